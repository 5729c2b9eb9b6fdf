import json
import re
from datetime import date, datetime
from flask import jsonify, request
from email_validator import validate_email as email_validator, EmailNotValidError


def validate_email(email):
    """Validate email address"""
    try:
        email_validator(email, check_deliverability=False)
        return True
    except EmailNotValidError:
        return False


def validate_phone(phone):
    """Loose international phone check: optional +, 7 to 15 digits"""
    if not phone:
        return False
    phone = re.sub(r'[\s\-()]', '', str(phone))
    return bool(re.match(r'^\+?\d{7,15}$', phone))


def validate_password(password, min_length=6):
    """Validate password length"""
    if not password:
        return False
    return len(password) >= min_length


def parse_date(value):
    """Parse an ISO date or datetime string into a date"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).split('T')[0], '%Y-%m-%d').date()


def validation_response(errors):
    return jsonify({'message': 'Validation failed', 'errors': errors}), 400


def read_payload(json_fields=()):
    """JSON body, or multipart form with JSON-encoded nested fields"""
    if request.is_json:
        return request.get_json(silent=True) or {}

    data = request.form.to_dict()
    for field in json_fields:
        if field in data and isinstance(data[field], str):
            try:
                data[field] = json.loads(data[field])
            except json.JSONDecodeError:
                pass
    return data


def add_error(errors, field, message):
    errors.setdefault(field, []).append(message)


def _missing(value):
    return value is None or (isinstance(value, str) and value.strip() == '')


def check_string(data, field, errors, required=False, min_length=None, max_length=None, label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if _missing(value):
        if required:
            add_error(errors, field, f'The {label} field is required.')
        return None
    if not isinstance(value, str):
        add_error(errors, field, f'The {label} must be a string.')
        return None
    value = value.strip()
    if min_length is not None and len(value) < min_length:
        add_error(errors, field, f'The {label} must be at least {min_length} characters.')
    if max_length is not None and len(value) > max_length:
        add_error(errors, field, f'The {label} may not be greater than {max_length} characters.')
    return value


def check_int(data, field, errors, required=False, minimum=None, maximum=None, label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if _missing(value):
        if required:
            add_error(errors, field, f'The {label} field is required.')
        return None
    if isinstance(value, bool):
        add_error(errors, field, f'The {label} must be an integer.')
        return None
    try:
        number = int(value)
        if isinstance(value, float) and number != value:
            raise ValueError(value)
    except (TypeError, ValueError):
        add_error(errors, field, f'The {label} must be an integer.')
        return None
    if minimum is not None and number < minimum:
        add_error(errors, field, f'The {label} must be at least {minimum}.')
    if maximum is not None and number > maximum:
        add_error(errors, field, f'The {label} may not be greater than {maximum}.')
    return number


def check_number(data, field, errors, required=False, minimum=None, maximum=None, exclusive_minimum=False,
                 label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if _missing(value):
        if required:
            add_error(errors, field, f'The {label} field is required.')
        return None
    if isinstance(value, bool):
        add_error(errors, field, f'The {label} must be a number.')
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        add_error(errors, field, f'The {label} must be a number.')
        return None
    if minimum is not None:
        if exclusive_minimum and number <= minimum:
            add_error(errors, field, f'The {label} must be greater than {minimum}.')
        elif not exclusive_minimum and number < minimum:
            add_error(errors, field, f'The {label} must be at least {minimum}.')
    if maximum is not None and number > maximum:
        add_error(errors, field, f'The {label} may not be greater than {maximum}.')
    return number


def check_choice(data, field, choices, errors, required=False, label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if _missing(value):
        if required:
            add_error(errors, field, f'The {label} field is required.')
        return None
    if value not in choices:
        add_error(errors, field, f'The selected {label} is invalid.')
        return None
    return value


def check_date(data, field, errors, required=False, label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if _missing(value):
        if required:
            add_error(errors, field, f'The {label} field is required.')
        return None
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        add_error(errors, field, f'The {label} is not a valid date.')
        return None


def check_bool(data, field, errors, label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', '1', 'false', '0'):
        return value.lower() in ('true', '1')
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    add_error(errors, field, f'The {label} field must be true or false.')
    return None


def check_list(data, field, errors, required=False, label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if value is None:
        if required:
            add_error(errors, field, f'The {label} field is required.')
        return None
    if not isinstance(value, list):
        add_error(errors, field, f'The {label} must be an array.')
        return None
    return value


def check_mapping(data, field, errors, required=False, label=None):
    label = label or field.replace('_', ' ')
    value = data.get(field)
    if value is None:
        if required:
            add_error(errors, field, f'The {label} field is required.')
        return None
    if not isinstance(value, dict):
        add_error(errors, field, f'The {label} must be an object.')
        return None
    return value


def check_exists(model, value, field, errors, label=None):
    """Ensure an id refers to an existing row"""
    from rentdesk import db
    if value is None:
        return None
    label = label or field.replace('_', ' ')
    record = db.session.get(model, value)
    if record is None:
        add_error(errors, field, f'The selected {label} is invalid.')
    return record
