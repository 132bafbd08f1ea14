"""
Analytics Engine

Pure aggregation and ranking functions over a transaction sequence.
None of them modify their input.

Kind filters: 'all', 'credits' (credit-like type codes) or 'debits'
(debit-like type codes).
"""
from collections import namedtuple
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

import pandas as pd

from src.common.models import BalanceAnchor, BalanceKind, ParsedTransaction
from src.parsing.config.settings import StatementConfig, DEFAULT_CONFIG
from src.parsing.dates import sort_key

NO_CHANNEL = 'Sin canal'
NO_DATE = 'Sin fecha'
KIND_FILTERS = ('all', 'credits', 'debits')

BalancePoint = namedtuple('BalancePoint', ['date', 'balance', 'transaction'])


def filter_kind(transactions: Sequence[ParsedTransaction], kind: str = 'all',
                config: StatementConfig = DEFAULT_CONFIG) -> List[ParsedTransaction]:
    if kind not in KIND_FILTERS:
        raise ValueError(f"Unknown kind filter: {kind!r}")
    if kind == 'credits':
        return [t for t in transactions if config.is_credit(t.type_code)]
    if kind == 'debits':
        return [t for t in transactions if config.is_debit(t.type_code)]
    return list(transactions)


def transactions_frame(transactions: Sequence[ParsedTransaction],
                       config: StatementConfig = DEFAULT_CONFIG) -> pd.DataFrame:
    """
    DataFrame projection used by the grouping functions.
    'position' indexes back into the input sequence.
    """
    rows = [
        {
            'position': i,
            'date': tx.date,
            'channel': tx.channel,
            'amount': float(tx.value),
            'is_credit': config.is_credit(tx.type_code),
            'is_debit': config.is_debit(tx.type_code),
        }
        for i, tx in enumerate(transactions)
    ]
    return pd.DataFrame(rows, columns=['position', 'date', 'channel', 'amount', 'is_credit', 'is_debit'])


def top_n(transactions: Sequence[ParsedTransaction], limit: int = 10, kind: str = 'all',
          config: StatementConfig = DEFAULT_CONFIG) -> List[ParsedTransaction]:
    """Largest amounts first; a limit beyond the length returns everything."""
    filtered = filter_kind(transactions, kind, config)
    ranked = sorted(filtered, key=lambda t: t.value, reverse=True)
    return ranked[:max(limit, 0)]


def daily_average(transactions: Sequence[ParsedTransaction], kind: str = 'all',
                  config: StatementConfig = DEFAULT_CONFIG) -> float:
    """Sum of matching amounts over the number of distinct dates (at least 1)."""
    df = transactions_frame(filter_kind(transactions, kind, config), config)
    if df.empty:
        return 0.0
    days = df.loc[df['date'] != '', 'date'].nunique()
    return float(df['amount'].sum()) / max(days, 1)


def group_by_channel(transactions: Sequence[ParsedTransaction],
                     config: StatementConfig = DEFAULT_CONFIG) -> Dict[str, dict]:
    """Per channel: count, total and the member transactions (input order)."""
    transactions = list(transactions)
    df = transactions_frame(transactions, config)
    df['channel'] = df['channel'].replace('', NO_CHANNEL)

    result = {}
    for channel, group in df.groupby('channel', sort=False):
        result[channel] = {
            'count': int(len(group)),
            'total': round(float(group['amount'].sum()), 2),
            'transactions': [transactions[i] for i in group['position']],
        }
    return result


def group_by_date(transactions: Sequence[ParsedTransaction],
                  config: StatementConfig = DEFAULT_CONFIG) -> Dict[str, dict]:
    """Per date: count, total, credit and debit subtotals and the member transactions."""
    transactions = list(transactions)
    df = transactions_frame(transactions, config)
    df['date'] = df['date'].replace('', NO_DATE)

    result = {}
    for day, group in df.groupby('date', sort=False):
        result[day] = {
            'count': int(len(group)),
            'total': round(float(group['amount'].sum()), 2),
            'credits': round(float(group.loc[group['is_credit'], 'amount'].sum()), 2),
            'debits': round(float(group.loc[group['is_debit'], 'amount'].sum()), 2),
            'transactions': [transactions[i] for i in group['position']],
        }
    return result


def extremes(transactions: Sequence[ParsedTransaction]) -> Dict[str, Optional[ParsedTransaction]]:
    """Highest and lowest amount; on ties the earliest occurrence wins."""
    if not transactions:
        return {'highest': None, 'lowest': None}

    highest = lowest = transactions[0]
    for tx in transactions[1:]:
        if tx.value > highest.value:
            highest = tx
        if tx.value < lowest.value:
            lowest = tx
    return {'highest': highest, 'lowest': lowest}


def _opening_value(opening, config: StatementConfig = DEFAULT_CONFIG) -> Decimal:
    if opening is None:
        return Decimal("0")
    if isinstance(opening, BalanceAnchor):
        return config.signed_value(opening)
    return Decimal(str(opening))


def running_balance(transactions: Sequence[ParsedTransaction], opening=None,
                    config: StatementConfig = DEFAULT_CONFIG) -> List[BalancePoint]:
    """
    Chronological (date, balance_after, transaction) points.

    Args:
        transactions: Any order; re-sorted (stably) by date first
        opening: BalanceAnchor, number, or None for zero
    """
    ordered = sorted(transactions, key=lambda t: sort_key(t.date, config.date_format))
    balance = _opening_value(opening, config)
    points = []

    for tx in ordered:
        if config.is_credit(tx.type_code):
            balance += tx.value
        elif config.is_debit(tx.type_code):
            balance -= tx.value
        points.append(BalancePoint(tx.date, balance, tx))

    return points


def period_stats(transactions: Sequence[ParsedTransaction], config: StatementConfig = DEFAULT_CONFIG) -> dict:
    credits = filter_kind(transactions, 'credits', config)
    debits = filter_kind(transactions, 'debits', config)
    total_credits = sum((t.value for t in credits), Decimal("0"))
    total_debits = sum((t.value for t in debits), Decimal("0"))
    return {
        'total_transactions': len(transactions),
        'credits': len(credits),
        'debits': len(debits),
        'total_credits': total_credits,
        'total_debits': total_debits,
        'net_balance': total_credits - total_debits,
    }


def summarize(statement, config: StatementConfig = DEFAULT_CONFIG) -> dict:
    """Headline figures of a StatementDocument or MergedStatement."""
    stats = period_stats(statement.transactions, config)
    available = statement.closings.get(BalanceKind.CLOSING_AVAILABLE)
    return {
        'opening': statement.opening.amount if statement.opening else '0.00',
        'total_transactions': stats['total_transactions'],
        'credits': stats['credits'],
        'debits': stats['debits'],
        'total_credits': f"{stats['total_credits']:.2f}",
        'total_debits': f"{stats['total_debits']:.2f}",
        'closing': available.amount if available else '0.00',
    }


def _percentage_change(before, after) -> float:
    if before > 0:
        return float((after - before) / before * 100)
    return 0.0


def compare_periods(first: Sequence[ParsedTransaction], second: Sequence[ParsedTransaction],
                    config: StatementConfig = DEFAULT_CONFIG) -> dict:
    """Stats of two periods, their differences and percentage changes."""
    p1 = period_stats(first, config)
    p2 = period_stats(second, config)
    return {
        'period1': p1,
        'period2': p2,
        'difference': {
            'transactions': p2['total_transactions'] - p1['total_transactions'],
            'credits': p2['total_credits'] - p1['total_credits'],
            'debits': p2['total_debits'] - p1['total_debits'],
            'net_balance': p2['net_balance'] - p1['net_balance'],
        },
        'percentage_change': {
            'transactions': _percentage_change(p1['total_transactions'], p2['total_transactions']),
            'credits': _percentage_change(p1['total_credits'], p2['total_credits']),
            'debits': _percentage_change(p1['total_debits'], p2['total_debits']),
        },
    }
