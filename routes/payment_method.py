from flask import Blueprint, g, request

from auth import login_required, require_owner_or_role
from models import PaymentMethod, Subscription, Transaction, db
from responses import BadRequestError, ConflictError, api_response
from routes import json_list, json_object, parse_optional_string, parse_string
from services.ownership import batch_delete, get_or_404, get_user_or_404

bp = Blueprint('payment_method', __name__, url_prefix='/v1/payment-method')


def _name_and_address_taken(owner_id, name, address, exclude_id=None):
    existing = PaymentMethod.query.filter_by(owner_id=owner_id, name=name, address=address).first()
    return existing is not None and existing.id != exclude_id


def _required_fields(payload):
    name = parse_string(payload.get('name'), 'name')
    address = parse_string(payload.get('address'), 'address')
    if not name or not address:
        raise BadRequestError('A payment-method needs a name and an address')
    return name, address


def is_referenced(payment_method):
    return (Subscription.query.filter_by(payment_method_id=payment_method.id).first() is not None
            or Transaction.query.filter_by(payment_method_id=payment_method.id).first() is not None)


@bp.route('', methods=['POST'])
@login_required
def create_payment_method():
    payload = json_object()
    name, address = _required_fields(payload)
    provider = parse_optional_string(payload.get('provider'), 'provider')
    description = parse_optional_string(payload.get('description'), 'description')
    owner = get_user_or_404(payload.get('owner'))
    require_owner_or_role(g.user, owner.uuid, "You can't create payment-methods for other users")

    if _name_and_address_taken(owner.uuid, name, address):
        raise ConflictError('There is already an payment-method by this name and address')

    payment_method = PaymentMethod(
        owner_id=owner.uuid,
        name=name,
        address=address,
        provider=provider,
        description=description,
    )
    db.session.add(payment_method)
    db.session.commit()
    return api_response(payment_method.to_dict())


@bp.route('', methods=['GET'])
@login_required
def get_payment_methods():
    owner = get_user_or_404(request.args.get('uuid'), data=[])
    require_owner_or_role(g.user, owner.uuid, "You can't retrieve payment-methods from different users")
    payment_methods = PaymentMethod.query.filter_by(owner_id=owner.uuid).order_by(PaymentMethod.name).all()
    return api_response([p.to_dict() for p in payment_methods])


@bp.route('', methods=['PUT'])
@login_required
def update_payment_method():
    payload = json_object()
    name, address = _required_fields(payload)
    provider = parse_optional_string(payload.get('provider'), 'provider')
    description = parse_optional_string(payload.get('description'), 'description')
    payment_method = get_or_404(PaymentMethod, payload.get('id'), "Provided payment-method doesn't exist")
    require_owner_or_role(g.user, payment_method.owner_id, "You can't modify payment-methods from other users")

    if _name_and_address_taken(payment_method.owner_id, name, address, exclude_id=payment_method.id):
        raise ConflictError('There is already an payment-method by this name and address')

    payment_method.name = name
    payment_method.address = address
    payment_method.provider = provider
    payment_method.description = description
    db.session.commit()
    return api_response(payment_method.to_dict())


@bp.route('', methods=['DELETE'])
@login_required
def delete_payment_methods():
    return batch_delete(PaymentMethod, json_list(), 'paymentMethodId', g.user, 'payment-methods',
                        blocked=is_referenced)
