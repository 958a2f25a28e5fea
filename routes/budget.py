from flask import Blueprint, g, request

from auth import login_required, require_owner_or_role
from models import Budget, Category, db
from responses import ConflictError, api_response
from routes import json_list, json_object, parse_amount
from services.ownership import batch_delete, get_or_404, get_user_or_404, owned_or_404
from services.stats import budget_progress

bp = Blueprint('budget', __name__, url_prefix='/v1/budget')


def _category_taken(owner_id, category_id, exclude_id=None):
    existing = Budget.query.filter_by(owner_id=owner_id, category_id=category_id).first()
    return existing is not None and existing.id != exclude_id


@bp.route('', methods=['POST'])
@login_required
def create_budget():
    payload = json_object()
    amount = parse_amount(payload.get('budget'), 'budget')
    owner = get_user_or_404(payload.get('owner'))
    require_owner_or_role(g.user, owner.uuid, "You can't set a budget for different users")

    category = owned_or_404(Category, payload.get('categoryId'), owner.uuid,
                            "Provided category doesn't exist or isn't owned by you")
    if _category_taken(owner.uuid, category.id):
        raise ConflictError('There is already an budget for this category')

    budget = Budget(owner_id=owner.uuid, category_id=category.id, budget=amount)
    db.session.add(budget)
    db.session.commit()
    return api_response(budget.to_dict())


@bp.route('', methods=['GET'])
@login_required
def get_budgets():
    owner = get_user_or_404(request.args.get('uuid'), data=[])
    require_owner_or_role(g.user, owner.uuid, "You can't retrieve budgets for different users")
    budgets = Budget.query.filter_by(owner_id=owner.uuid).order_by(Budget.id).all()
    return api_response([b.to_dict() for b in budgets])


@bp.route('/progress', methods=['GET'])
@login_required
def get_budget_progress():
    owner = get_user_or_404(request.args.get('uuid'), data=[])
    require_owner_or_role(g.user, owner.uuid, "You can't retrieve budgets for different users")
    return api_response(budget_progress(owner.uuid))


@bp.route('', methods=['PUT'])
@login_required
def update_budget():
    payload = json_object()
    amount = parse_amount(payload.get('budget'), 'budget')
    budget = get_or_404(Budget, payload.get('budgetId'), "Provided budget doesn't exist")
    require_owner_or_role(g.user, budget.owner_id, "You can't update budgets for different users")

    category = owned_or_404(Category, payload.get('categoryId'), budget.owner_id,
                            "Provided category doesn't exist")
    if _category_taken(budget.owner_id, category.id, exclude_id=budget.id):
        raise ConflictError('There is already an budget for this category')

    budget.category = category
    budget.budget = amount
    db.session.commit()
    return api_response(budget.to_dict())


@bp.route('', methods=['DELETE'])
@login_required
def delete_budgets():
    return batch_delete(Budget, json_list(), 'budgetId', g.user, 'budgets')
