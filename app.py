#!/usr/bin/env python3
"""
RentDesk Backend Application Runner
"""
import os
from rentdesk import create_app, db
from rentdesk.models import User, Property, RentalUnit, Tenant, RentInvoice, PaymentRecord

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        'db': db,
        'User': User,
        'Property': Property,
        'RentalUnit': RentalUnit,
        'Tenant': Tenant,
        'RentInvoice': RentInvoice,
        'PaymentRecord': PaymentRecord,
    }


if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV') == 'development'
    app.run(host='0.0.0.0', port=port, debug=debug)
