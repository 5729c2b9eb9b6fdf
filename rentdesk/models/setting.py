from datetime import datetime
from rentdesk import db

DEFAULT_SETTINGS = {
    'rent_due_days': '7',
    'late_fee_per_day': '10',
    'default_currency': 'MVR',
    'auto_generate_rent': 'false',
}


class Setting(db.Model):
    __tablename__ = 'settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @staticmethod
    def as_dict():
        settings = dict(DEFAULT_SETTINGS)
        settings.update({s.key: s.value for s in Setting.query.all()})
        return settings

    @staticmethod
    def get(key, default=None):
        setting = Setting.query.filter_by(key=key).first()
        if setting:
            return setting.value
        return DEFAULT_SETTINGS.get(key, default)

    @staticmethod
    def get_int(key, default):
        value = str(Setting.get(key, default))
        return int(value) if value.isdigit() else default

    def __repr__(self):
        return f'<Setting {self.key}>'
