from flask import Blueprint, g, request

from auth import CROSS_USER_ROLE, login_required, require_owner_or_role
from models import User, db
from responses import ConflictError, api_response
from routes import json_object, parse_optional_string, parse_string
from services.ownership import get_user_or_404

bp = Blueprint('user', __name__, url_prefix='/v1/user')


@bp.route('', methods=['GET'])
@login_required
def get_user():
    user = get_user_or_404(request.args.get('uuid'), 'Provided user not found')
    require_owner_or_role(g.user, user.uuid, "You can't retrieve different users", CROSS_USER_ROLE)
    return api_response(user.to_dict())


@bp.route('', methods=['PUT'])
@login_required
def update_user():
    payload = json_object()
    email = parse_string(payload.get('email'), 'email').lower()
    name = parse_optional_string(payload.get('name'), 'name')
    surname = parse_optional_string(payload.get('surname'), 'surname')
    user = get_user_or_404(payload.get('uuid'), 'Requested user not found')
    require_owner_or_role(g.user, user.uuid, "You can't edit different users")

    email = email or user.email
    taken = User.query.filter(User.email == email, User.uuid != user.uuid).first()
    if taken:
        raise ConflictError('This email is already in use')

    user.email = email
    user.name = name
    user.surname = surname
    db.session.commit()
    return api_response(user.to_dict())
