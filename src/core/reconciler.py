from decimal import Decimal
from typing import Iterable, Optional

from src.common.logging_config import get_logger
from src.common.models import BalanceAnchor, BalanceKind, ParsedTransaction, ReconciliationReport
from src.parsing.config.settings import StatementConfig, DEFAULT_CONFIG

logger = get_logger(__name__)


def reported_closing_anchor(closings) -> Optional[BalanceAnchor]:
    """Closing-available balance, falling back to closing-book."""
    return closings.get(BalanceKind.CLOSING_AVAILABLE) or closings.get(BalanceKind.CLOSING_BOOK)


class BalanceReconciler:
    def __init__(self, config: StatementConfig = DEFAULT_CONFIG):
        self.config = config

    def totals(self, transactions: Iterable[ParsedTransaction]):
        """Returns (total_credits, total_debits) over credit/debit-like rows."""
        credits = Decimal("0")
        debits = Decimal("0")
        for tx in transactions:
            if self.config.is_credit(tx.type_code):
                credits += tx.value
            elif self.config.is_debit(tx.type_code):
                debits += tx.value
        return credits, debits

    def reconcile(self, statement) -> ReconciliationReport:
        """
        Validates that Opening + Credits - Debits = Reported Closing.
        Never raises on a mismatch: the outcome is in the returned report.
        """
        opening = self.config.signed_value(statement.opening) if statement.opening else Decimal("0")
        credits, debits = self.totals(statement.transactions)
        calculated = opening + credits - debits

        anchor = reported_closing_anchor(statement.closings)
        if anchor is None:
            logger.info("No reported closing balance; reconciliation skipped", calculated=calculated)
            return ReconciliationReport(
                is_valid=None,
                opening=opening,
                total_credits=credits,
                total_debits=debits,
                calculated_closing=calculated,
                reported_closing=None,
                difference=None,
                message="Saldo final no detectado.",
            )

        reported = self.config.signed_value(anchor)
        difference = calculated - reported

        if abs(difference) <= self.config.reconciliation_tolerance:
            logger.info("Balance reconciled", calculated=calculated, reported=reported)
            return ReconciliationReport(
                is_valid=True,
                opening=opening,
                total_credits=credits,
                total_debits=debits,
                calculated_closing=calculated,
                reported_closing=reported,
                difference=difference,
                message="Conciliación correcta",
            )

        logger.warning(
            "Balance discrepancy",
            calculated=calculated,
            reported=reported,
            difference=difference,
        )
        return ReconciliationReport(
            is_valid=False,
            opening=opening,
            total_credits=credits,
            total_debits=debits,
            calculated_closing=calculated,
            reported_closing=reported,
            difference=difference,
            message=f"Divergencia: Calc: {calculated:.2f} | Real: {reported:.2f} | Diff: {difference:.2f}",
        )
