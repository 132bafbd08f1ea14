"""
Statement Processing Configuration

Dataclasses holding every tunable constant of the decode/merge/reconcile
pipeline. Defaults describe the semi-structured "Estado de Cuenta" export.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Tuple

from src.common.models import BalanceAnchor, BalanceKind, CREDIT_CODES, DEBIT_CODES, normalize_type_code


@dataclass
class ChannelMarker:
    """
    Maps narrative substrings to a channel label.

    Attributes:
        label: Channel name reported on the transaction
        markers: Substrings, any of which selects this channel
    """
    label: str
    markers: List[str]


def default_balance_phrases() -> List[Tuple[str, BalanceKind]]:
    # Tested in this order; the first phrase found in the narrative wins
    return [
        ("Saldo Contable Anterior", BalanceKind.OPENING),
        ("Saldo Contable Final", BalanceKind.CLOSING_BOOK),
        ("Saldo Reservado", BalanceKind.CLOSING_RESERVED),
        ("Saldo Sobre Giro", BalanceKind.CLOSING_OVERDRAFT),
        ("Saldo Disponible Final", BalanceKind.CLOSING_AVAILABLE),
    ]


def default_channel_markers() -> List[ChannelMarker]:
    return [
        ChannelMarker(label="Mobile Banking", markers=["BANCAMOVIL", "BANCA MOVIL"]),
        ChannelMarker(label="Electronic Transfer", markers=["CORREO ELECTRONICO"]),
        ChannelMarker(label="Transfer", markers=["TRANSFERENCIA"]),
    ]


def default_record_fields() -> Dict[str, str]:
    return {
        'date': 'fecha',
        'narrative': 'observ',
        'amount': 'importe',
        'type_code': 'tipo',
        'reference_current': 'ref_corrie',
        'reference_origin': 'ref_origin',
    }


@dataclass
class StatementConfig:
    """
    Configuration for decoding, merging and reconciling statements.

    Attributes:
        root_key: Top-level node of the field tree
        record_key: Repeated record node under root_key
        record_fields: Logical field -> source field name
        balance_phrases: Ordered (phrase, kind) pairs identifying balance rows
        channel_markers: Ordered channel markers, first match wins
        currency_markers: The two mutually exclusive source-name markers
        date_format: The single day/month/year convention used everywhere
        reconciliation_tolerance: Largest accepted |calculated - reported|
        concept_max_length: Truncation length for the narrative-derived concept
        history_limit: Batches kept by the history recorder
        history_preview_size: Transactions stored per history entry
    """
    root_key: str = 'NewDataSet'
    record_key: str = 'Estado_x0020_de_x0020_Cuenta'
    record_fields: Dict[str, str] = field(default_factory=default_record_fields)
    balance_phrases: List[Tuple[str, BalanceKind]] = field(default_factory=default_balance_phrases)
    channel_markers: List[ChannelMarker] = field(default_factory=default_channel_markers)
    currency_markers: List[str] = field(default_factory=lambda: ['CUP', 'MLC'])
    date_format: str = '%d/%m/%Y'
    reconciliation_tolerance: Decimal = Decimal('0.01')
    concept_max_length: int = 100
    history_limit: int = 10
    history_preview_size: int = 10
    credit_codes: Tuple[str, ...] = CREDIT_CODES
    debit_codes: Tuple[str, ...] = DEBIT_CODES

    def is_credit(self, type_code: str) -> bool:
        return normalize_type_code(type_code) in self.credit_codes

    def is_debit(self, type_code: str) -> bool:
        return normalize_type_code(type_code) in self.debit_codes

    def signed_value(self, anchor: BalanceAnchor) -> Decimal:
        """Balance amount, negative when the row carries a debit-like code (overdrawn)."""
        if self.is_debit(anchor.type_code):
            return -anchor.value
        return anchor.value


DEFAULT_CONFIG = StatementConfig()
