from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from models import Category, PaymentMethod, RolePermission, Subscription, Transaction, User, db

PASSWORD = 'secret-password'


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.db'}",
        'SECRET_KEY': 'test-secret',
        'SCHEDULER_ENABLED': False,
        'MAIL_SERVICE_ADDRESS': None,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


# ---------------------- Factories ----------------------
@pytest.fixture
def make_user(app):
    def _make(email, role=RolePermission.BASIC, name='Test', password=PASSWORD):
        with app.app_context():
            user = User(email=email, name=name, surname='User',
                        password_hash=generate_password_hash(password), role=role)
            db.session.add(user)
            db.session.commit()
            return user.uuid
    return _make


@pytest.fixture
def make_category(app):
    def _make(owner, name='Groceries', description=None):
        with app.app_context():
            category = Category(owner_id=owner, name=name, description=description)
            db.session.add(category)
            db.session.commit()
            return category.id
    return _make


@pytest.fixture
def make_payment_method(app):
    def _make(owner, name='Girokonto', address='DE89 3704 0044 0532 0130 00', provider='Bank'):
        with app.app_context():
            payment_method = PaymentMethod(owner_id=owner, name=name, address=address, provider=provider)
            db.session.add(payment_method)
            db.session.commit()
            return payment_method.id
    return _make


@pytest.fixture
def make_subscription(app):
    def _make(owner, category_id, payment_method_id, execute_at=15, paused=False,
              transfer_amount=-9.99, receiver='Netflix'):
        with app.app_context():
            subscription = Subscription(owner_id=owner, category_id=category_id,
                                        payment_method_id=payment_method_id, paused=paused,
                                        execute_at=execute_at, receiver=receiver,
                                        description='Streaming', transfer_amount=transfer_amount)
            db.session.add(subscription)
            db.session.commit()
            return subscription.id
    return _make


@pytest.fixture
def make_transaction(app):
    def _make(owner, category_id, payment_method_id, transfer_amount=-10.0, processed_at=None,
              receiver='Supermarket'):
        with app.app_context():
            transaction = Transaction(owner_id=owner, category_id=category_id,
                                      payment_method_id=payment_method_id,
                                      processed_at=processed_at or datetime.now(),
                                      receiver=receiver, transfer_amount=transfer_amount)
            db.session.add(transaction)
            db.session.commit()
            return transaction.id
    return _make


# ---------------------- Sessions ----------------------
@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        response = client.post('/v1/auth/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return response.get_json()['data']
    return _login


@pytest.fixture
def alice(make_user, login):
    """A basic user with an active session on ``client``."""
    uuid = make_user('alice@budget-buddy.de', name='Alice')
    login('alice@budget-buddy.de')
    return uuid


@pytest.fixture
def bob(make_user):
    return make_user('bob@budget-buddy.de', name='Bob')


@pytest.fixture
def service_account(make_user, login):
    uuid = make_user('service@budget-buddy.de', role=RolePermission.SERVICE_ACCOUNT, name='Service')
    login('service@budget-buddy.de')
    return uuid
