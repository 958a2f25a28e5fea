"""
Daily materialization of due subscriptions into transactions.

``process_subscriptions`` is the job itself; ``SubscriptionScheduler`` is the
timer thread that runs it once a day at a fixed local hour. Each run is
recorded in the ``job_run`` ledger so a second run on the same day (restart,
manual trigger) does not duplicate transactions.
"""
import logging
import threading
from datetime import date, datetime, timedelta

from sqlalchemy.exc import IntegrityError

from models import JobRun, Subscription, Transaction, db

logger = logging.getLogger(__name__)

JOB_NAME = 'process-subscriptions'


def process_subscriptions(today=None):
    """Insert one transaction per unpaused subscription due today.

    Returns the created transactions, or None when the day was already
    processed.
    """
    today = today or date.today()
    logger.info('Starting process subscriptions for %s', today.isoformat())

    if JobRun.query.filter_by(job=JOB_NAME, run_date=today).first():
        logger.info('Subscriptions for %s were already processed', today.isoformat())
        return None

    subscriptions = Subscription.query.filter_by(execute_at=today.day, paused=False).all()
    now = datetime.combine(today, datetime.now().time())
    transactions = [Transaction.of_subscription(s, now) for s in subscriptions]

    db.session.add(JobRun(job=JOB_NAME, run_date=today, processed=len(transactions)))
    db.session.add_all(transactions)
    try:
        db.session.commit()
    except IntegrityError:
        # another worker recorded the same day first
        db.session.rollback()
        logger.warning('Subscriptions for %s are processed by another run', today.isoformat())
        return None

    if not transactions:
        logger.info('No subscriptions to process')
    else:
        logger.info('Processed %d subscriptions', len(transactions))
    return transactions


def next_run_at(now, hour):
    run = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if run <= now:
        run += timedelta(days=1)
    return run


class SubscriptionScheduler(threading.Thread):
    def __init__(self, app, hour=3):
        super().__init__(name='subscription-scheduler', daemon=True)
        self.app = app
        self.hour = hour
        self._stopped = threading.Event()

    def seconds_until_next_run(self, now=None):
        now = now or datetime.now()
        return (next_run_at(now, self.hour) - now).total_seconds()

    def run(self):
        logger.info('Subscription scheduler started, running daily at %02d:00', self.hour)
        while not self._stopped.wait(self.seconds_until_next_run()):
            with self.app.app_context():
                try:
                    process_subscriptions()
                except Exception:
                    db.session.rollback()
                    logger.exception('%s failed', JOB_NAME)

    def stop(self):
        self._stopped.set()
