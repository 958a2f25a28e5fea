import enum
import uuid
from datetime import datetime, timedelta
from urllib.parse import urlencode

from flask import Blueprint, current_app, redirect, request, session
from werkzeug.security import check_password_hash, generate_password_hash

from auth import SESSION_KEY, current_user, start_session, user_from_bearer
from models import RolePermission, User, UserPasswordReset, db
from responses import BadRequestError, ConflictError, NotFoundError, UnauthorizedError, api_response
from routes import json_object, parse_optional_string, parse_string
from services import mail

bp = Blueprint('auth', __name__, url_prefix='/v1/auth')


def _require_admin():
    """Only an admin, identified by bearer token, may create privileged accounts."""
    header = request.headers.get('Authorization')
    if not header:
        raise UnauthorizedError('You need to verify yourself in order to proceed')
    try:
        admin = user_from_bearer(header)
    except ValueError:
        raise UnauthorizedError('Your provided Bearer-Token is not correctly formatted')
    if admin is None:
        raise UnauthorizedError('Your provided credentials are invalid')
    if not admin.outranks(RolePermission.ADMIN):
        raise UnauthorizedError("You don't have the permissions to create this user")


# ---------------------- Routes: Registration & Session ----------------------
@bp.route('/register', methods=['POST'])
def register():
    payload = json_object()
    email = parse_string(payload.get('email'), 'email').lower()
    password = parse_optional_string(payload.get('password'), 'password') or ''
    name = parse_optional_string(payload.get('name'), 'name')
    surname = parse_optional_string(payload.get('surname'), 'surname')
    if not email or not password:
        raise BadRequestError('Email and password are required')

    if User.query.filter_by(email=email).first():
        raise ConflictError('This email is already in use')

    try:
        role = RolePermission.parse(payload.get('role')) or RolePermission.BASIC
    except ValueError as e:
        raise BadRequestError(str(e))
    if role.outranks(RolePermission.SERVICE_ACCOUNT):
        _require_admin()

    user = User(
        email=email,
        name=name,
        surname=surname,
        password_hash=generate_password_hash(password),
        role=role,
    )
    db.session.add(user)
    db.session.commit()

    mail.notify(mail.verification_mail(user), 'registration', "Couldn't send the verification email")
    return api_response(user.to_dict())


@bp.route('/login', methods=['POST'])
def login():
    payload = json_object()
    email = parse_string(payload.get('email'), 'email').lower()
    password = parse_optional_string(payload.get('password'), 'password') or ''
    user = User.query.filter_by(email=email).first()
    if not user:
        raise NotFoundError('There is no user registered under this email address')
    if not check_password_hash(user.password_hash, password):
        raise UnauthorizedError('The provided password is incorrect')

    start_session(user)
    return api_response(user.to_dict(), message="You're logged in")


@bp.route('/validate', methods=['POST'])
def validate():
    if not session.get(SESSION_KEY):
        raise UnauthorizedError("Couldn't find a active session")

    # the session only holds the id, the user is always read fresh
    user = current_user()
    if user is None:
        session.clear()
        raise UnauthorizedError('Your user has been deleted')
    return api_response(user.to_dict(), message='Found a valid session')


class VerifyMailReturnCode(enum.Enum):
    SUCCESS = 'SUCCESS'
    USER_NOT_FOUND = 'USER_NOT_FOUND'
    ALREADY_VERIFIED = 'ALREADY_VERIFIED'
    INVALID_EMAIL = 'INVALID_EMAIL'


def _verify_mail_address(user_id, mail_address):
    try:
        user = db.session.get(User, str(uuid.UUID(user_id or '')))
    except ValueError:
        user = None
    if user is None:
        return VerifyMailReturnCode.USER_NOT_FOUND
    if user.email != (mail_address or '').lower().strip():
        return VerifyMailReturnCode.INVALID_EMAIL
    if user.is_verified:
        return VerifyMailReturnCode.ALREADY_VERIFIED

    user.is_verified = True
    db.session.commit()
    return VerifyMailReturnCode.SUCCESS


@bp.route('/verify', methods=['GET'])
def verify_mail_address():
    """Link target of the welcome mail; redirects to ``returnTo`` with the result ``code``."""
    return_to = request.args.get('returnTo')
    if not return_to:
        raise BadRequestError('A returnTo address is required')

    code = _verify_mail_address(request.args.get('uuid'), request.args.get('mailAddress'))
    separator = '&' if '?' in return_to else '?'
    return redirect(f"{return_to}{separator}{urlencode({'code': code.value})}")


@bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return api_response(message='Your session has been destroyed')


# ---------------------- Routes: Password Reset ----------------------
def _valid_reset(otp):
    reset = UserPasswordReset.query.filter_by(otp=otp).first() if otp else None
    if reset is None:
        raise NotFoundError('No session found for the provided session', False)
    if reset.used:
        raise UnauthorizedError('This OTP has already been used', False)
    ttl = timedelta(minutes=current_app.config['PASSWORD_RESET_TTL_MINUTES'])
    if datetime.now() - reset.created_at >= ttl:
        raise UnauthorizedError('This OTP has expired', False)
    return reset


@bp.route('/password/request-reset', methods=['POST'])
def request_password_reset():
    email = (request.args.get('email') or '').lower().strip()
    user = User.query.filter_by(email=email).first() if email else None
    if user is None:
        raise NotFoundError('No user found for the provided email')

    reset = UserPasswordReset(owner_id=user.uuid)
    db.session.add(reset)
    db.session.commit()

    mail.notify(mail.request_password_mail(user.email, user.uuid, reset.otp),
                'password-reset', "Couldn't send the request-password-change email")
    return api_response(reset.to_dict())


@bp.route('/password/validate-otp', methods=['POST'])
def validate_otp():
    _valid_reset(request.args.get('otp'))
    return api_response(True)


@bp.route('/password/reset', methods=['POST'])
def reset_password():
    reset = _valid_reset(request.args.get('otp'))
    new_password = request.args.get('newPassword')
    if not new_password:
        raise BadRequestError('A new password is required')

    reset.used = True
    user = reset.owner
    user.password_hash = generate_password_hash(new_password)
    db.session.commit()

    mail.notify(mail.password_changed_mail(user.email, user.name, user.email),
                'password-reset', "Couldn't send the password-changed notification email")
    return api_response(user.to_dict())
