"""
Lookups and batch deletion shared by the resource blueprints.

Referenced rows that exist but belong to someone else are reported exactly
like missing rows, so a caller can't probe other users' ids.
"""
from models import User, db
from responses import BadRequestError, NotFoundError, batch_response


def get_or_404(model, pk, message):
    row = db.session.get(model, pk) if pk is not None else None
    if row is None:
        raise NotFoundError(message)
    return row


def get_user_or_404(user_id, message="Provided user doesn't exist", data=None):
    user = db.session.get(User, str(user_id)) if user_id else None
    if user is None:
        raise NotFoundError(message, data)
    return user


def owned_or_404(model, pk, owner_id, message):
    """Fetch ``model`` by id, but only if ``owner_id`` owns it."""
    row = model.query.filter_by(id=pk, owner_id=owner_id).first() if pk is not None else None
    if row is None:
        raise NotFoundError(message)
    return row


def batch_delete(model, items, id_key, caller, label, blocked=None):
    """Delete every item the caller owns, report the rest as failed.

    Each deletion is committed on its own; a later failure never rolls back
    an earlier success.
    """
    if not items:
        raise BadRequestError(f"No {label} we're provided")

    success, failed = [], []
    for item in items:
        pk = item.get(id_key) if isinstance(item, dict) else None
        row = db.session.get(model, pk) if pk is not None else None
        if row is None or row.owner_id != caller.uuid or (blocked and blocked(row)):
            failed.append(item)
            continue
        snapshot = row.to_dict()
        db.session.delete(row)
        db.session.commit()
        success.append(snapshot)

    return batch_response(success, failed, len(items), label)
