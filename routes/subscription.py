from flask import Blueprint, g, request

from auth import CROSS_USER_ROLE, login_required, require_owner_or_role, require_role
from models import Category, PaymentMethod, Subscription, db
from responses import BadRequestError, ConflictError, api_response
from routes import (json_object, json_payload, parse_amount, parse_bool, parse_optional_string,
                    parse_string)
from services.ownership import batch_delete, get_or_404, get_user_or_404, owned_or_404

bp = Blueprint('subscription', __name__, url_prefix='/v1/subscription')

INVALID_EXECUTION_DATE = 'Execution must lay between the first and 31nd of the month'


def _execute_at(value):
    if not Subscription.is_valid_execution_date(value):
        raise ConflictError(INVALID_EXECUTION_DATE)
    return value


def _apply(subscription, payload, owner_id):
    """Copy the payload onto ``subscription``; references must belong to ``owner_id``."""
    transfer_amount = parse_amount(payload.get('transferAmount'))
    paused = parse_bool(payload.get('paused'), 'paused')
    receiver = parse_string(payload.get('receiver'), 'receiver')
    description = parse_optional_string(payload.get('description'), 'description')
    if not receiver:
        raise BadRequestError('A receiver is required')

    subscription.category = owned_or_404(Category, payload.get('categoryId'), owner_id,
                                         'Provided category not found')
    subscription.payment_method = owned_or_404(PaymentMethod, payload.get('paymentMethodId'), owner_id,
                                               'Provided payment-method not found')
    subscription.paused = paused
    subscription.execute_at = payload['executeAt']
    subscription.receiver = receiver
    subscription.description = description
    subscription.transfer_amount = transfer_amount
    return subscription


@bp.route('', methods=['POST'])
@login_required
def create_subscription():
    payload = json_object()
    _execute_at(payload.get('executeAt'))

    owner = get_user_or_404(payload.get('owner'), 'Provided owner not found')
    require_owner_or_role(
        g.user, owner.uuid,
        "You don't have the permissions to create subscriptions for a different user",
        CROSS_USER_ROLE)

    subscription = _apply(Subscription(owner_id=owner.uuid), payload, owner.uuid)
    db.session.add(subscription)
    db.session.commit()
    return api_response(subscription.to_dict())


@bp.route('', methods=['GET'])
@login_required
def get_subscriptions():
    owner = get_user_or_404(request.args.get('uuid'), data=[])
    require_owner_or_role(
        g.user, owner.uuid,
        "You don't have the permissions to retrieve subscriptions from a different user",
        CROSS_USER_ROLE)
    subscriptions = Subscription.query.filter_by(owner_id=owner.uuid).order_by(Subscription.execute_at).all()
    return api_response([s.to_dict() for s in subscriptions])


@bp.route('/all', methods=['GET'])
@login_required
def get_all_subscriptions():
    require_role(g.user, CROSS_USER_ROLE, "You don't have the permissions to retrieve subscriptions")

    execute_at = _execute_at(request.args.get('execute_at', type=int))
    paused = request.args.get('paused', 'false').lower() in ('true', '1')
    subscriptions = Subscription.query.filter_by(execute_at=execute_at, paused=paused).all()
    return api_response([s.to_dict() for s in subscriptions])


@bp.route('', methods=['PUT'])
@login_required
def update_subscription():
    payload = json_object()
    _execute_at(payload.get('executeAt'))

    subscription = get_or_404(Subscription, payload.get('subscriptionId'), 'Provided subscription not found')
    require_owner_or_role(g.user, subscription.owner_id, "You don't own this subscription", CROSS_USER_ROLE)

    _apply(subscription, payload, subscription.owner_id)
    db.session.commit()
    return api_response(subscription.to_dict())


@bp.route('', methods=['DELETE'])
@login_required
def delete_subscription():
    payload = json_payload()
    if isinstance(payload, list):
        return batch_delete(Subscription, payload, 'subscriptionId', g.user, 'subscriptions')
    if not isinstance(payload, dict):
        raise BadRequestError('Request body must be a JSON object or list')

    subscription = get_or_404(Subscription, payload.get('subscriptionId'), 'Provided subscription not found')
    require_owner_or_role(g.user, subscription.owner_id, "You don't own this subscription")

    snapshot = subscription.to_dict()
    db.session.delete(subscription)
    db.session.commit()
    return api_response(snapshot)
