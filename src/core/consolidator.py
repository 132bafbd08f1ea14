from datetime import date
from typing import List, Optional, Sequence

from src.common.logging_config import get_logger
from src.common.models import MergedStatement, StatementDocument
from src.parsing.config.settings import StatementConfig, DEFAULT_CONFIG
from src.parsing.dates import parse_statement_date, sort_key
from src.parsing.exceptions import CurrencyMismatch
from .homogeneity import validate_homogeneity

logger = get_logger(__name__)


class StatementConsolidator:
    """
    Merges consecutive statement documents into one ledger.

    Transactions are concatenated in upload order and stably sorted by date.
    The opening balance comes from the document whose first transaction is
    earliest; the closing set from the document whose last transaction is
    latest. Upload order breaks ties in both cases.
    """

    def __init__(self, config: StatementConfig = DEFAULT_CONFIG):
        self.config = config

    def _edge_date(self, document: StatementDocument, position: int) -> Optional[date]:
        if not document.transactions:
            return None
        return parse_statement_date(document.transactions[position].date, self.config.date_format)

    def select_opening_source(self, documents: Sequence[StatementDocument]) -> int:
        """Index of the document whose first transaction has the earliest date."""
        def key(index):
            first = self._edge_date(documents[index], 0)
            # Documents without a dated first transaction rank after dated ones
            return (first is None, first or date.min, index)
        return min(range(len(documents)), key=key)

    def select_closing_source(self, documents: Sequence[StatementDocument]) -> int:
        """Index of the document whose last transaction has the latest date."""
        def key(index):
            last = self._edge_date(documents[index], -1)
            return (last is None, -(last or date.min).toordinal(), index)
        return min(range(len(documents)), key=key)

    def consolidate(self, documents: Sequence[StatementDocument], sources: Sequence[str] = None) -> MergedStatement:
        """
        Merge documents supplied in upload order.

        Args:
            documents: Assembled documents, at least one
            sources: Identifiers (filenames) per document; defaults to each
                document's source_file

        Raises:
            ValueError: no documents supplied
            CurrencyMismatch: identifiers carry conflicting currency markers
        """
        documents = list(documents)
        if not documents:
            raise ValueError("At least one document is required")

        if sources is None:
            sources = [d.source_file for d in documents]
        sources = list(sources)
        if len(sources) != len(documents):
            raise ValueError("One source identifier per document is required")

        if len(documents) == 1:
            only = documents[0]
            return MergedStatement(
                opening=only.opening,
                transactions=tuple(only.transactions),
                closings=dict(only.closings),
                sources=tuple(sources),
            )

        check = validate_homogeneity(sources, self.config)
        if not check.accepted:
            raise CurrencyMismatch(check.markers, sources)

        combined: List = []
        for document in documents:
            combined.extend(document.transactions)
        combined.sort(key=lambda tx: sort_key(tx.date, self.config.date_format))

        opening_idx = self.select_opening_source(documents)
        closing_idx = self.select_closing_source(documents)

        logger.info(
            "Consolidated documents",
            documents=len(documents),
            transactions=len(combined),
            opening_source=sources[opening_idx],
            closing_source=sources[closing_idx],
        )

        return MergedStatement(
            opening=documents[opening_idx].opening,
            transactions=tuple(combined),
            closings=dict(documents[closing_idx].closings),
            sources=tuple(sources),
        )
