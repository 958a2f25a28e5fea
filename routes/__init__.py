from datetime import datetime

from flask import request

from responses import BadRequestError


def register_blueprints(app):
    from routes import auth, budget, category, payment_method, subscription, transaction, user

    for module in (auth, user, category, payment_method, budget, subscription, transaction):
        app.register_blueprint(module.bp)


# ---------------------- Request Helpers ----------------------
def json_payload():
    payload = request.get_json(silent=True)
    if payload is None:
        raise BadRequestError('Request body must be valid JSON')
    return payload


def json_object():
    payload = json_payload()
    if not isinstance(payload, dict):
        raise BadRequestError('Request body must be a JSON object')
    return payload


def json_list():
    payload = json_payload()
    if not isinstance(payload, list):
        raise BadRequestError('Request body must be a JSON list')
    return payload


def parse_datetime(value, field):
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise BadRequestError(f'{field} must be an ISO-8601 date')
    # stored as naive local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_amount(value, field='transferAmount'):
    if isinstance(value, bool):
        raise BadRequestError(f'{field} must be a number')
    try:
        return float(value)
    except (TypeError, ValueError):
        raise BadRequestError(f'{field} must be a number')


def parse_string(value, field):
    """Return ``value`` stripped, '' when it is missing."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise BadRequestError(f'{field} must be a string')
    return value.strip()


def parse_optional_string(value, field):
    if value is None:
        return None
    if not isinstance(value, str):
        raise BadRequestError(f'{field} must be a string')
    return value


def parse_bool(value, field, default=False):
    if value is None:
        return default
    if not isinstance(value, bool):
        raise BadRequestError(f'{field} must be true or false')
    return value
