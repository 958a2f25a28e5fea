import calendar
import enum
from datetime import date, datetime, timedelta

import pandas as pd

from models import Budget, Subscription, Transaction, db


class DailyTransactionType(enum.Enum):
    INCOME = 'INCOME'
    SPENDINGS = 'SPENDINGS'
    BALANCE = 'BALANCE'


def _month_bounds(today):
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def _query_user_df(user_id, start=None, end=None):
    """DataFrame of the user's transactions, optionally limited to [start, end] (dates)."""
    q = db.session.query(Transaction).filter(Transaction.owner_id == user_id)
    if start:
        q = q.filter(Transaction.processed_at >= datetime.combine(start, datetime.min.time()))
    if end:
        q = q.filter(Transaction.processed_at < datetime.combine(end + timedelta(days=1), datetime.min.time()))
    rows = q.all()
    if not rows:
        return pd.DataFrame({
            'date': pd.Series(dtype='datetime64[ns]'),
            'amount': pd.Series(dtype='float64'),
            'category_id': pd.Series(dtype='int64'),
        })
    df = pd.DataFrame([{
        'date': r.processed_at,
        'amount': float(r.transfer_amount),
        'category_id': r.category_id,
    } for r in rows])
    df['date'] = pd.to_datetime(df['date'])
    return df


def _income(df):
    return float(df.loc[df['amount'] > 0, 'amount'].sum())


def _spendings(df):
    return abs(float(df.loc[df['amount'] < 0, 'amount'].sum()))


def daily_transactions(user_id, start_date, end_date, requested):
    """Per-day totals between both dates (inclusive), 0 for days without transactions."""
    df = _query_user_df(user_id, start_date, end_date)
    if requested is DailyTransactionType.INCOME:
        df = df[df['amount'] > 0]
    elif requested is DailyTransactionType.SPENDINGS:
        df = df[df['amount'] < 0].assign(amount=lambda d: d['amount'].abs())

    days = pd.date_range(start_date, end_date, freq='D')
    totals = df.groupby(df['date'].dt.normalize())['amount'].sum().reindex(days, fill_value=0.0)
    return [{'date': d.date().isoformat(), 'amount': float(v)} for d, v in totals.items()]


def monthly_balance(user_id):
    df = _query_user_df(user_id)
    if df.empty:
        return []
    df['month'] = df['date'].dt.to_period('M')
    result = []
    for month, group in df.groupby('month'):
        income = _income(group)
        expenses = _spendings(group)
        result.append({
            'month': month.start_time.date().isoformat(),
            'income': income,
            'expenses': expenses,
            'balance': income - expenses,
        })
    return result


def dashboard_stats(user_id, today=None):
    """Current month figures; "upcoming" covers the rest of the month including due subscriptions."""
    today = today or date.today()
    first_day, last_day = _month_bounds(today)

    past = _query_user_df(user_id, first_day, today)
    upcoming = _query_user_df(user_id, today + timedelta(days=1), last_day) if today < last_day else None

    due = Subscription.query.filter(
        Subscription.owner_id == user_id,
        Subscription.paused.is_(False),
        Subscription.execute_at > today.day,
        Subscription.execute_at <= last_day.day,
    ).all()
    subscription_earnings = sum(s.transfer_amount for s in due if s.transfer_amount > 0)
    subscription_expenses = abs(sum(s.transfer_amount for s in due if s.transfer_amount < 0))

    upcoming_earnings = subscription_earnings
    upcoming_expenses = subscription_expenses
    if upcoming is not None:
        upcoming_earnings += _income(upcoming)
        upcoming_expenses += _spendings(upcoming)

    return {
        'earnings': _income(past),
        'upcomingEarnings': float(upcoming_earnings),
        'expenses': _spendings(past),
        'upcomingExpenses': float(upcoming_expenses),
        'balance': float(past['amount'].sum()),
    }


def budget_progress(user_id, today=None):
    """Each budget of the user with the amount spent in its category this month."""
    today = today or date.today()
    first_day, last_day = _month_bounds(today)
    df = _query_user_df(user_id, first_day, last_day)
    spent = df[df['amount'] < 0].groupby('category_id')['amount'].sum().abs()

    result = []
    for budget in Budget.query.filter_by(owner_id=user_id).order_by(Budget.id).all():
        entry = budget.to_dict()
        entry['amountSpent'] = float(spent.get(budget.category_id, 0.0))
        result.append(entry)
    return result
