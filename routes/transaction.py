from datetime import date, datetime

from flask import Blueprint, g, request

from auth import CROSS_USER_ROLE, login_required, require_owner_or_role
from models import Category, PaymentMethod, Transaction, TransactionFile, db
from responses import BadRequestError, api_response
from routes import (json_list, json_object, json_payload, parse_amount, parse_datetime,
                    parse_optional_string, parse_string)
from services import stats
from services.ownership import batch_delete, get_or_404, get_user_or_404, owned_or_404

bp = Blueprint('transaction', __name__, url_prefix='/v1/transaction')


def _apply(transaction, payload, owner_id):
    transfer_amount = parse_amount(payload.get('transferAmount'))
    receiver = parse_string(payload.get('receiver'), 'receiver')
    description = parse_optional_string(payload.get('description'), 'description')
    if not receiver:
        raise BadRequestError('A receiver is required')

    transaction.category = owned_or_404(Category, payload.get('categoryId'), owner_id,
                                        'Provided category not found')
    transaction.payment_method = owned_or_404(PaymentMethod, payload.get('paymentMethodId'), owner_id,
                                              'Provided payment-method not found')
    transaction.processed_at = parse_datetime(payload.get('processedAt'), 'processedAt') or datetime.now()
    transaction.receiver = receiver
    transaction.description = description
    transaction.transfer_amount = transfer_amount
    return transaction


# ---------------------- Routes: CRUD ----------------------
@bp.route('', methods=['POST'])
@login_required
def create_transactions():
    """Create a list of transactions; the first invalid entry rejects the whole request."""
    payload = json_payload()
    items = payload if isinstance(payload, list) else [payload]

    transactions = []
    for attrs in items:
        if not isinstance(attrs, dict):
            raise BadRequestError('Every transaction must be a JSON object')
        owner = get_user_or_404(attrs.get('owner'), 'Provided owner not found')
        require_owner_or_role(
            g.user, owner.uuid,
            "You don't have the permissions to create transactions for a different user",
            CROSS_USER_ROLE)
        transactions.append(_apply(Transaction(owner_id=owner.uuid), attrs, owner.uuid))

    db.session.add_all(transactions)
    db.session.commit()
    return api_response([t.to_dict() for t in transactions])


@bp.route('', methods=['GET'])
@login_required
def get_transactions():
    owner = get_user_or_404(request.args.get('uuid'), data=[])
    require_owner_or_role(
        g.user, owner.uuid,
        "You don't have the permissions to retrieve transactions from a different user",
        CROSS_USER_ROLE)
    transactions = (Transaction.query.filter_by(owner_id=owner.uuid)
                    .order_by(Transaction.processed_at.desc()).all())
    return api_response([t.to_dict() for t in transactions])


@bp.route('/single', methods=['GET'])
@login_required
def get_transaction():
    transaction = owned_or_404(Transaction, request.args.get('transactionId', type=int), g.user.uuid,
                               'Provided transaction not found')
    return api_response(transaction.to_dict())


@bp.route('', methods=['PUT'])
@login_required
def update_transaction():
    payload = json_object()
    transaction = get_or_404(Transaction, payload.get('transactionId'), 'Provided transaction not found')
    require_owner_or_role(g.user, transaction.owner_id, "You don't own this transaction", CROSS_USER_ROLE)

    _apply(transaction, payload, transaction.owner_id)
    db.session.commit()
    return api_response(transaction.to_dict())


@bp.route('', methods=['DELETE'])
@login_required
def delete_transactions():
    return batch_delete(Transaction, json_list(), 'transactionId', g.user, 'transactions')


# ---------------------- Routes: Files ----------------------
@bp.route('/file', methods=['POST'])
@login_required
def attach_files():
    files = json_list()
    if not files:
        raise BadRequestError('No files provided')

    attached, failed = [], []
    for file in files:
        pk = file.get('transactionId') if isinstance(file, dict) else None
        transaction = db.session.get(Transaction, pk) if pk is not None else None
        if transaction is None or transaction.owner_id != g.user.uuid:
            failed.append(file)
            continue
        attached.append(TransactionFile(
            owner_id=transaction.owner_id,
            transaction_id=transaction.id,
            file_name=file.get('fileName'),
            file_size=file.get('fileSize'),
            mime_type=file.get('mimeType'),
            location=file.get('fileUrl'),
        ))

    if not attached:
        raise BadRequestError("No valid transactions and files we're provided",
                              {'success': [], 'failed': failed})

    db.session.add_all(attached)
    db.session.commit()
    return api_response({'success': [f.to_dict() for f in attached], 'failed': failed})


@bp.route('/file', methods=['DELETE'])
@login_required
def detach_files():
    files = json_list()
    if not files:
        raise BadRequestError("No file id's provided")

    detached, failed = [], []
    for file in files:
        pk = file.get('uuid') if isinstance(file, dict) else None
        transaction_file = db.session.get(TransactionFile, str(pk)) if pk is not None else None
        if transaction_file is None or transaction_file.owner_id != g.user.uuid:
            failed.append(file)
            continue
        detached.append(transaction_file)

    if not detached:
        raise BadRequestError("No valid file id's we're provided", {'success': [], 'failed': failed})

    snapshots = [f.to_dict() for f in detached]
    for transaction_file in detached:
        db.session.delete(transaction_file)
    db.session.commit()
    return api_response({'success': snapshots, 'failed': failed})


# ---------------------- Routes: Statistics ----------------------
@bp.route('/daily', methods=['GET'])
@login_required
def get_daily_transactions():
    try:
        start_date = date.fromisoformat(request.args.get('startDate', ''))
        end_date = date.fromisoformat(request.args.get('endDate', ''))
        requested = stats.DailyTransactionType(request.args.get('requestedData', '').upper())
    except ValueError:
        raise BadRequestError('startDate, endDate and requestedData (INCOME, SPENDINGS, BALANCE) are required')
    if start_date > end_date:
        raise BadRequestError('The startDate needs to be before the endDate')

    return api_response(stats.daily_transactions(g.user.uuid, start_date, end_date, requested))


@bp.route('/stats', methods=['GET'])
@login_required
def get_dashboard_stats():
    return api_response(stats.dashboard_stats(g.user.uuid))


@bp.route('/monthly-balance', methods=['GET'])
@login_required
def get_monthly_balance():
    return api_response(stats.monthly_balance(g.user.uuid))
