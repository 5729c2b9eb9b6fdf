from rentdesk.models.currency import Currency


class CurrencyService:

    @staticmethod
    def find_active(code):
        if not code:
            return None
        return Currency.query.filter_by(code=str(code).upper(), is_active=True).first()

    @staticmethod
    def convert(amount, from_currency, to_currency):
        """Convert through the base currency: amount / from.rate * to.rate"""
        from_rate = float(from_currency.exchange_rate)
        to_rate = float(to_currency.exchange_rate)
        if from_rate <= 0:
            raise ValueError(f'Invalid exchange rate for {from_currency.code}')

        converted = round(float(amount) / from_rate * to_rate, to_currency.decimal_places or 0)
        return {
            'amount': float(amount),
            'from_currency': from_currency.code,
            'to_currency': to_currency.code,
            'converted_amount': converted,
            'exchange_rate': round(to_rate / from_rate, 6),
            'formatted': to_currency.format_amount(converted),
        }
