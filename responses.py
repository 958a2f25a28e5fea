"""
Response envelope and typed API errors.

Every endpoint answers with ``{status, message, data}``; the HTTP status
always equals ``status``. Views raise one of the errors below and the
handlers registered in ``app.py`` turn them into envelopes.
"""
from flask import jsonify


def api_response(data=None, status=200, message=None):
    return jsonify({'status': status, 'message': message, 'data': data}), status


class ApiError(Exception):
    status = 500

    def __init__(self, message=None, data=None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_response(self):
        return api_response(self.data, self.status, self.message)


class BadRequestError(ApiError):
    status = 400


class UnauthorizedError(ApiError):
    status = 401


class NotFoundError(ApiError):
    status = 404


class ConflictError(ApiError):
    status = 409


def batch_response(success, failed, total, label):
    """Partial-failure contract shared by every batch endpoint.

    Successful items stay committed even when others failed; only a batch in
    which every item failed is answered with 400.
    """
    data = {'success': success, 'failed': failed}
    if len(failed) == total:
        raise BadRequestError(f"All provided {label} we're invalid values", data)
    return api_response(data)
