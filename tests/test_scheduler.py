from datetime import date, datetime

import pytest

from models import JobRun, Transaction
from services.scheduler import SubscriptionScheduler, next_run_at, process_subscriptions

PAYDAY = date(2024, 5, 15)


@pytest.fixture
def subscriptions(bob, make_category, make_payment_method, make_subscription):
    category_id, payment_method_id = make_category(bob), make_payment_method(bob)
    return {
        'active': make_subscription(bob, category_id, payment_method_id, execute_at=15),
        'paused': make_subscription(bob, category_id, payment_method_id, execute_at=15, paused=True),
        'other_day': make_subscription(bob, category_id, payment_method_id, execute_at=16),
    }


def test_processes_only_due_unpaused_subscriptions(app, subscriptions):
    with app.app_context():
        created = process_subscriptions(PAYDAY)

        assert len(created) == 1
        transaction = Transaction.query.one()
        assert transaction.receiver == 'Netflix'
        assert transaction.transfer_amount == -9.99
        assert transaction.processed_at.date() == PAYDAY


def test_second_run_on_same_day_is_skipped(app, subscriptions):
    with app.app_context():
        assert len(process_subscriptions(PAYDAY)) == 1
        assert process_subscriptions(PAYDAY) is None

        assert Transaction.query.count() == 1
        assert JobRun.query.one().processed == 1


def test_run_without_due_subscriptions_is_recorded(app, subscriptions):
    with app.app_context():
        assert process_subscriptions(date(2024, 5, 1)) == []
        assert JobRun.query.filter_by(run_date=date(2024, 5, 1)).one().processed == 0


def test_next_run_at():
    assert next_run_at(datetime(2024, 5, 15, 1, 30), 3) == datetime(2024, 5, 15, 3)
    assert next_run_at(datetime(2024, 5, 15, 3, 0), 3) == datetime(2024, 5, 16, 3)
    assert next_run_at(datetime(2024, 5, 31, 23, 0), 3) == datetime(2024, 6, 1, 3)


def test_seconds_until_next_run(app):
    scheduler = SubscriptionScheduler(app, hour=3)
    assert scheduler.daemon
    assert scheduler.seconds_until_next_run(datetime(2024, 5, 15, 2, 0)) == 3600


def test_cli_command(app, subscriptions):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['process-subscriptions', '--date', PAYDAY.isoformat()])
    assert 'Processed 1 subscriptions.' in result.output

    result = runner.invoke(args=['process-subscriptions', '--date', PAYDAY.isoformat()])
    assert 'Subscriptions were already processed for this day.' in result.output
