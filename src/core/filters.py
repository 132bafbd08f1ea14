"""
Transaction search and advanced filters for ledger views.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from src.common.models import ParsedTransaction, parse_amount
from src.parsing.config.settings import StatementConfig, DEFAULT_CONFIG
from src.parsing.dates import parse_statement_date
from .analytics import filter_kind

SEARCH_FIELDS = (
    'date',
    'reference_current',
    'reference_origin',
    'channel',
    'payer_name',
    'payer_national_id',
    'origin_account',
    'beneficiary_account',
    'concept',
    'amount',
    'type_code',
)


@dataclass
class TransactionFilter:
    """
    Blank/None values disable a criterion.

    Attributes:
        date_from: Inclusive lower bound, statement date text
        date_to: Inclusive upper bound, statement date text
        amount_min: Inclusive lower bound on the amount magnitude
        amount_max: Inclusive upper bound on the amount magnitude
        kind: 'all', 'credits' or 'debits'
        channel: 'all' or an exact channel label
    """
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    amount_min: Optional[str] = None
    amount_max: Optional[str] = None
    kind: str = 'all'
    channel: str = 'all'

    @property
    def is_active(self) -> bool:
        return any([self.date_from, self.date_to, self.amount_min, self.amount_max,
                    self.kind != 'all', self.channel != 'all'])


def search_transactions(transactions: Sequence[ParsedTransaction], term: str) -> List[ParsedTransaction]:
    """Case-insensitive substring match over the displayed fields."""
    if not term or not term.strip():
        return list(transactions)

    needle = term.strip().lower()
    return [
        tx for tx in transactions
        if any(needle in (getattr(tx, name) or '').lower() for name in SEARCH_FIELDS)
    ]


def filter_transactions(transactions: Sequence[ParsedTransaction], criteria: TransactionFilter,
                        config: StatementConfig = DEFAULT_CONFIG) -> List[ParsedTransaction]:
    result = filter_kind(transactions, criteria.kind, config)

    if criteria.channel and criteria.channel != 'all':
        result = [t for t in result if t.channel == criteria.channel]

    start = parse_statement_date(criteria.date_from, config.date_format) if criteria.date_from else None
    end = parse_statement_date(criteria.date_to, config.date_format) if criteria.date_to else None
    if start or end:
        kept = []
        for tx in result:
            day = parse_statement_date(tx.date, config.date_format)
            if day is None:
                continue
            if start and day < start:
                continue
            if end and day > end:
                continue
            kept.append(tx)
        result = kept

    low = parse_amount(criteria.amount_min) if criteria.amount_min else None
    high = parse_amount(criteria.amount_max) if criteria.amount_max else None
    if low is not None:
        result = [t for t in result if t.value >= low]
    if high is not None:
        result = [t for t in result if t.value <= high]

    return result
