from dataclasses import dataclass, field, asdict
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, Optional, Tuple

CREDIT_CODES = ('cr', 'hb')
DEBIT_CODES = ('dr', 'db')


def parse_amount(amount_text) -> Decimal:
    """
    Parses statement amount text to a non-negative Decimal.
    Examples:
        "100.00" -> Decimal("100.00")
        "1,250.50" -> Decimal("1250.50")
        "" -> Decimal("0")
    Unparseable text reads as zero.
    """
    if amount_text is None:
        return Decimal("0")
    if isinstance(amount_text, Decimal):
        return abs(amount_text)
    if isinstance(amount_text, (int, float)):
        return abs(Decimal(str(amount_text)))

    clean_str = str(amount_text).strip().replace(',', '')
    if not clean_str:
        return Decimal("0")
    try:
        value = Decimal(clean_str)
    except InvalidOperation:
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    return abs(value)


def normalize_type_code(type_code: str) -> str:
    return (type_code or '').strip().lower()


class BalanceKind(Enum):
    OPENING = 'opening'
    CLOSING_BOOK = 'closing_book'
    CLOSING_RESERVED = 'closing_reserved'
    CLOSING_OVERDRAFT = 'closing_overdraft'
    CLOSING_AVAILABLE = 'closing_available'

    @property
    def is_closing(self) -> bool:
        return self is not BalanceKind.OPENING


@dataclass(frozen=True)
class BalanceAnchor:
    """
    A balance row of the statement (opening or one of the closing variants).
    The amount stays as source text; direction comes from type_code.
    """
    kind: BalanceKind
    amount: str
    type_code: str = ''

    @property
    def value(self) -> Decimal:
        return parse_amount(self.amount)

    def to_dict(self):
        return {
            'kind': self.kind.value,
            'amount': self.amount,
            'type_code': self.type_code,
        }


@dataclass(frozen=True)
class ParsedTransaction:
    """
    Canonical representation of one statement movement.
    Formal fields come straight from the record, the rest is mined from
    the narrative. Missing extracted fields are empty strings.
    """
    date: str
    reference_current: str
    reference_origin: str
    amount: str
    type_code: str
    payer_name: str = ''
    payer_national_id: str = ''
    masked_card: str = ''
    origin_account: str = ''
    beneficiary_account: str = ''
    channel: str = ''
    concept: str = ''
    narrative: str = ''
    source_file: str = ''

    @property
    def value(self) -> Decimal:
        return parse_amount(self.amount)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class StatementDocument:
    opening: Optional[BalanceAnchor]
    transactions: Tuple[ParsedTransaction, ...]
    closings: Dict[BalanceKind, BalanceAnchor] = field(default_factory=dict)
    source_file: str = ''

    def closing(self, kind: BalanceKind) -> Optional[BalanceAnchor]:
        return self.closings.get(kind)

    def to_dict(self):
        return {
            'source_file': self.source_file,
            'opening': self.opening.to_dict() if self.opening else None,
            'transactions': [t.to_dict() for t in self.transactions],
            'closings': {k.value: v.to_dict() for k, v in self.closings.items()},
        }


@dataclass(frozen=True)
class MergedStatement:
    """
    Ledger built from one or more documents. Owns its transaction tuple;
    opening and closings are picked from the contributing documents.
    """
    opening: Optional[BalanceAnchor]
    transactions: Tuple[ParsedTransaction, ...]
    closings: Dict[BalanceKind, BalanceAnchor] = field(default_factory=dict)
    sources: Tuple[str, ...] = ()

    def closing(self, kind: BalanceKind) -> Optional[BalanceAnchor]:
        return self.closings.get(kind)

    def to_dict(self):
        return {
            'sources': list(self.sources),
            'opening': self.opening.to_dict() if self.opening else None,
            'transactions': [t.to_dict() for t in self.transactions],
            'closings': {k.value: v.to_dict() for k, v in self.closings.items()},
        }


@dataclass(frozen=True)
class DuplicateGroup:
    key: Tuple[str, str, str]  # (date, amount, reference_current)
    first_index: int
    duplicate_index: int


@dataclass(frozen=True)
class ReconciliationReport:
    """
    Outcome of recomputing the closing balance.
    is_valid is None when the statement reports no closing to compare with.
    """
    is_valid: Optional[bool]
    opening: Decimal
    total_credits: Decimal
    total_debits: Decimal
    calculated_closing: Decimal
    reported_closing: Optional[Decimal]
    difference: Optional[Decimal]
    message: str = ''

    def to_dict(self):
        return {
            'is_valid': self.is_valid,
            'opening': str(self.opening),
            'total_credits': str(self.total_credits),
            'total_debits': str(self.total_debits),
            'calculated_closing': str(self.calculated_closing),
            'reported_closing': None if self.reported_closing is None else str(self.reported_closing),
            'difference': None if self.difference is None else str(self.difference),
            'message': self.message,
        }


@dataclass(frozen=True)
class HomogeneityResult:
    accepted: bool
    markers: Tuple[str, ...] = ()
    reason: str = ''


@dataclass(frozen=True)
class BatchResult:
    statement: MergedStatement
    report: ReconciliationReport
    duplicates: Tuple[DuplicateGroup, ...] = ()
    generation: int = 0
