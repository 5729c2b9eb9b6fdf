from datetime import datetime
from rentdesk import db


class Currency(db.Model):
    __tablename__ = 'currencies'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(3), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    symbol = db.Column(db.String(10), nullable=False)
    exchange_rate = db.Column(db.Numeric(18, 6), nullable=False, default=1)
    is_base = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True, index=True)
    decimal_places = db.Column(db.Integer, default=2)
    thousands_separator = db.Column(db.String(1), default=',')
    decimal_separator = db.Column(db.String(1), default='.')

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @staticmethod
    def get_base():
        return Currency.query.filter_by(is_base=True).first()

    def make_base(self):
        """Make this the only base currency"""
        Currency.query.filter(Currency.id != self.id, Currency.is_base.is_(True)) \
            .update({'is_base': False}, synchronize_session='fetch')
        self.is_base = True
        self.exchange_rate = 1

    def format_amount(self, amount):
        places = self.decimal_places or 0
        formatted = f'{float(amount):,.{places}f}'
        formatted = formatted.replace(',', '\0').replace('.', self.decimal_separator or '.')
        formatted = formatted.replace('\0', self.thousands_separator or '')
        return f'{self.symbol} {formatted}'

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'symbol': self.symbol,
            'exchange_rate': float(self.exchange_rate) if self.exchange_rate is not None else None,
            'is_base': self.is_base,
            'is_active': self.is_active,
            'decimal_places': self.decimal_places,
            'thousands_separator': self.thousands_separator,
            'decimal_separator': self.decimal_separator,
        }

    def __repr__(self):
        return f'<Currency {self.code}>'
