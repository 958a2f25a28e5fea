import uuid
from functools import wraps

from flask import g, request, session

from models import RolePermission, User, db
from responses import ApiError, ConflictError, UnauthorizedError

SESSION_KEY = 'user_id'
PUBLIC_PREFIX = '/v1/auth/'
# may act on other users' subscriptions and transactions
CROSS_USER_ROLE = RolePermission.SERVICE_ACCOUNT


# ---------------------- Session ----------------------
def current_user():
    """Return the live user behind the session, or None."""
    uid = session.get(SESSION_KEY)
    if uid:
        return db.session.get(User, uid)
    return None


def start_session(user):
    session.clear()
    session[SESSION_KEY] = user.uuid


def login_required(view_func):
    @wraps(view_func)
    def wrapped(*args, **kwargs):
        user = current_user()
        if not user:
            raise UnauthorizedError('No valid session found. Sign in first')
        g.user = user
        return view_func(*args, **kwargs)
    return wrapped


# ---------------------- Bearer tokens ----------------------
def parse_bearer(header):
    """Split ``Bearer <uuid>[.<password-hash>]`` into (uuid, hash or None).

    Raises ValueError when the header or the uuid is malformed.
    """
    parts = header.split(' ')
    if len(parts) != 2 or parts[0] != 'Bearer':
        raise ValueError('Invalid Authorization header format')
    user_id, _, password_hash = parts[1].partition('.')
    return str(uuid.UUID(user_id)), password_hash or None


def user_from_bearer(header):
    user_id, password_hash = parse_bearer(header)
    user = db.session.get(User, user_id)
    if user is None:
        return None
    if password_hash is not None and password_hash != user.password_hash:
        return None
    return user


def authenticate_bearer():
    """before_request hook: an Authorization header opens a session for its user.

    Requests without the header fall through to the cookie session.
    """
    if request.method == 'OPTIONS' or request.path.startswith(PUBLIC_PREFIX):
        return None
    header = request.headers.get('Authorization')
    if header is None:
        return None
    if not header.startswith('Bearer'):
        raise UnauthorizedError('No Bearer-Token was provided')
    try:
        user = user_from_bearer(header)
    except ValueError as e:
        raise ApiError('internal-server-error', str(e)) from e
    if user is None:
        raise UnauthorizedError('Provided Bearer-Token is invalid')
    session[SESSION_KEY] = user.uuid
    return None


# ---------------------- Ownership ----------------------
def is_owner_or_role(caller, owner_id, min_role=None):
    if caller is None:
        return False
    if caller.uuid == owner_id:
        return True
    return min_role is not None and caller.outranks(min_role)


def require_owner_or_role(caller, owner_id, message, min_role=None):
    if not is_owner_or_role(caller, owner_id, min_role):
        raise ConflictError(message)


def require_role(caller, min_role, message):
    if not caller.outranks(min_role):
        raise ConflictError(message)
