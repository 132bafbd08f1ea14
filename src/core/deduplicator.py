"""
Duplicate Detector

Flags transactions sharing (date, amount, reference_current) with an
earlier one. The first occurrence is the original; every later occurrence
becomes a DuplicateGroup pointing back at it.
"""
from typing import List, Sequence, Tuple

from src.common.logging_config import get_logger
from src.common.models import DuplicateGroup, ParsedTransaction

logger = get_logger(__name__)


def duplicate_key(tx: ParsedTransaction) -> Tuple[str, str, str]:
    return (tx.date, tx.amount, tx.reference_current)


class DuplicateDetector:

    def detect(self, transactions: Sequence[ParsedTransaction]) -> List[DuplicateGroup]:
        """Scan in input order; the input is not modified."""
        seen = {}
        groups = []

        for index, tx in enumerate(transactions):
            key = duplicate_key(tx)
            if key in seen:
                groups.append(DuplicateGroup(key=key, first_index=seen[key], duplicate_index=index))
            else:
                seen[key] = index

        if groups:
            logger.info("Duplicates detected", duplicates=len(groups), transactions=len(transactions))
        return groups

    def remove_flagged(self, transactions: Sequence[ParsedTransaction], groups: Sequence[DuplicateGroup]) -> Tuple[ParsedTransaction, ...]:
        """New sequence without the flagged duplicates; survivors keep their order."""
        flagged = {g.duplicate_index for g in groups}
        kept = tuple(tx for index, tx in enumerate(transactions) if index not in flagged)
        logger.debug("Removed duplicates", removed=len(transactions) - len(kept), remaining=len(kept))
        return kept

    def mark(self, transactions: Sequence[ParsedTransaction]) -> List[Tuple[ParsedTransaction, bool]]:
        """(transaction, is_duplicate) pairs in input order."""
        flagged = {g.duplicate_index for g in self.detect(transactions)}
        return [(tx, index in flagged) for index, tx in enumerate(transactions)]
