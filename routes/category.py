from flask import Blueprint, g, request

from auth import login_required, require_owner_or_role
from models import Category, Subscription, Transaction, db
from responses import BadRequestError, ConflictError, api_response
from routes import json_list, json_object, parse_optional_string, parse_string
from services.ownership import batch_delete, get_or_404, get_user_or_404

bp = Blueprint('category', __name__, url_prefix='/v1/category')


def _name_taken(owner_id, name, exclude_id=None):
    existing = Category.query.filter_by(owner_id=owner_id, name=name).first()
    return existing is not None and existing.id != exclude_id


def _required_name(payload):
    name = parse_string(payload.get('name'), 'name')
    if not name:
        raise BadRequestError('A category name is required')
    return name


def is_referenced(category):
    """Categories still used by subscriptions or transactions can't be deleted."""
    return (Subscription.query.filter_by(category_id=category.id).first() is not None
            or Transaction.query.filter_by(category_id=category.id).first() is not None)


@bp.route('', methods=['POST'])
@login_required
def create_category():
    payload = json_object()
    name = _required_name(payload)
    description = parse_optional_string(payload.get('description'), 'description')
    owner = get_user_or_404(payload.get('owner'))
    require_owner_or_role(g.user, owner.uuid, "You can't create categories for other users")

    if _name_taken(owner.uuid, name):
        raise ConflictError('There is already an category by this name')

    category = Category(owner_id=owner.uuid, name=name, description=description)
    db.session.add(category)
    db.session.commit()
    return api_response(category.to_dict())


@bp.route('', methods=['GET'])
@login_required
def get_categories():
    owner = get_user_or_404(request.args.get('uuid'), data=[])
    require_owner_or_role(g.user, owner.uuid, "You can't retrieve categories from different users")
    categories = Category.query.filter_by(owner_id=owner.uuid).order_by(Category.name).all()
    return api_response([c.to_dict() for c in categories])


@bp.route('', methods=['PUT'])
@login_required
def update_category():
    payload = json_object()
    name = _required_name(payload)
    description = parse_optional_string(payload.get('description'), 'description')
    category = get_or_404(Category, payload.get('categoryId'), "Provided category doesn't exist")
    require_owner_or_role(g.user, category.owner_id, "You can't modify categories from other users")

    if _name_taken(category.owner_id, name, exclude_id=category.id):
        raise ConflictError('There is already an category by this name')

    category.name = name
    category.description = description
    db.session.commit()
    return api_response(category.to_dict())


@bp.route('', methods=['DELETE'])
@login_required
def delete_categories():
    return batch_delete(Category, json_list(), 'categoryId', g.user, 'categories', blocked=is_referenced)
