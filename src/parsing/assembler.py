"""
Document Assembler

Groups classified records into one StatementDocument.

Repeated balance phrases inside one document: the first opening row is kept,
and for each closing kind the last row seen is kept.
"""
from typing import Dict, Iterable, List, Optional

from src.common.logging_config import get_logger
from src.common.models import BalanceAnchor, BalanceKind, ParsedTransaction, StatementDocument
from .config.settings import StatementConfig, DEFAULT_CONFIG
from .decoder import ClassifiedRecord
from .observations import ObservationExtractor

logger = get_logger(__name__)


class DocumentAssembler:

    def __init__(self, config: StatementConfig = DEFAULT_CONFIG, extractor: ObservationExtractor = None):
        self.config = config
        self.extractor = extractor or ObservationExtractor(config)

    def _anchor(self, item: ClassifiedRecord) -> BalanceAnchor:
        fields = self.config.record_fields
        return BalanceAnchor(
            kind=item.kind,
            amount=item.record.get(fields['amount']) or '',
            type_code=item.record.get(fields['type_code']) or '',
        )

    def assemble(self, classified: Iterable[ClassifiedRecord], source_file: str = '') -> StatementDocument:
        opening: Optional[BalanceAnchor] = None
        closings: Dict[BalanceKind, BalanceAnchor] = {}
        transactions: List[ParsedTransaction] = []

        for item in classified:
            if item.is_transaction:
                transactions.append(self.extractor.enrich(item.record, source_file))
            elif item.kind is BalanceKind.OPENING:
                if opening is None:
                    opening = self._anchor(item)
                else:
                    logger.warning("Repeated opening balance ignored", source_file=source_file)
            else:
                if item.kind in closings:
                    logger.debug("Repeated closing balance replaced", source_file=source_file, kind=item.kind.value)
                closings[item.kind] = self._anchor(item)

        logger.debug(
            "Assembled document",
            source_file=source_file,
            transactions=len(transactions),
            has_opening=opening is not None,
            closings=[k.value for k in closings],
        )
        return StatementDocument(
            opening=opening,
            transactions=tuple(transactions),
            closings=closings,
            source_file=source_file,
        )
