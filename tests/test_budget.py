from datetime import datetime, timedelta

import pytest


@pytest.fixture
def groceries(alice, make_category):
    return make_category(alice, name='Groceries')


def create(client, owner, category_id, budget=250):
    return client.post('/v1/budget', json={'owner': owner, 'categoryId': category_id, 'budget': budget})


def test_create_budget(client, alice, groceries):
    response = create(client, alice, groceries)
    data = response.get_json()['data']

    assert response.status_code == 200
    assert data['budget'] == 250
    assert data['category']['id'] == groceries


def test_create_requires_numeric_budget(client, alice, groceries):
    response = create(client, alice, groceries, budget='lots')
    assert response.status_code == 400


def test_create_with_foreign_category(client, alice, bob, make_category):
    response = create(client, alice, make_category(bob))

    assert response.status_code == 404
    assert response.get_json()['message'] == "Provided category doesn't exist or isn't owned by you"


def test_create_for_other_user(client, alice, bob, groceries):
    response = create(client, bob, groceries)

    assert response.status_code == 409
    assert response.get_json()['message'] == "You can't set a budget for different users"


def test_one_budget_per_category(client, alice, groceries):
    create(client, alice, groceries)
    response = create(client, alice, groceries, budget=100)

    assert response.status_code == 409
    assert response.get_json()['message'] == 'There is already an budget for this category'


def test_get_budgets(client, alice, bob, groceries):
    create(client, alice, groceries)

    assert len(client.get(f'/v1/budget?uuid={alice}').get_json()['data']) == 1
    assert client.get(f'/v1/budget?uuid={bob}').status_code == 409


def test_update_budget(client, alice, groceries, make_category):
    budget_id = create(client, alice, groceries).get_json()['data']['id']
    rent = make_category(alice, name='Rent')

    response = client.put('/v1/budget', json={'budgetId': budget_id, 'categoryId': rent, 'budget': 900})
    data = response.get_json()['data']

    assert response.status_code == 200
    assert data['budget'] == 900
    assert data['category']['name'] == 'Rent'


def test_update_unknown_budget_and_category(client, alice, groceries):
    response = client.put('/v1/budget', json={'budgetId': 999, 'categoryId': groceries, 'budget': 1})
    assert response.status_code == 404
    assert response.get_json()['message'] == "Provided budget doesn't exist"

    budget_id = create(client, alice, groceries).get_json()['data']['id']
    response = client.put('/v1/budget', json={'budgetId': budget_id, 'categoryId': 999, 'budget': 1})
    assert response.status_code == 404
    assert response.get_json()['message'] == "Provided category doesn't exist"


def test_update_onto_category_with_budget(client, alice, groceries, make_category):
    rent = make_category(alice, name='Rent')
    create(client, alice, rent)
    budget_id = create(client, alice, groceries).get_json()['data']['id']

    response = client.put('/v1/budget', json={'budgetId': budget_id, 'categoryId': rent, 'budget': 1})
    assert response.status_code == 409


def test_batch_delete(client, alice, groceries):
    budget_id = create(client, alice, groceries).get_json()['data']['id']

    response = client.delete('/v1/budget', json=[{'budgetId': budget_id}, {'budgetId': 999}])
    data = response.get_json()['data']
    assert response.status_code == 200
    assert [b['id'] for b in data['success']] == [budget_id]
    assert data['failed'] == [{'budgetId': 999}]


def test_progress_sums_this_months_spendings(client, alice, groceries, make_payment_method, make_transaction):
    create(client, alice, groceries)
    payment_method_id = make_payment_method(alice)
    make_transaction(alice, groceries, payment_method_id, transfer_amount=-30.5)
    make_transaction(alice, groceries, payment_method_id, transfer_amount=-19.5)
    make_transaction(alice, groceries, payment_method_id, transfer_amount=15.0)
    make_transaction(alice, groceries, payment_method_id, transfer_amount=-500,
                     processed_at=datetime.now() - timedelta(days=70))

    response = client.get(f'/v1/budget/progress?uuid={alice}')
    progress = response.get_json()['data']

    assert response.status_code == 200
    assert len(progress) == 1
    assert progress[0]['budget'] == 250
    assert progress[0]['amountSpent'] == pytest.approx(50.0)
