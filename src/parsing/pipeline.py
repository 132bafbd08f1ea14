"""
Statement Pipeline

Orchestrates one batch of statement field-trees:
homogeneity check -> decode -> extract -> assemble -> merge -> reconcile
-> duplicate detection.
"""
import threading

from dataclasses import replace
from typing import Any, List, Optional, Sequence, Tuple

from src.common.history import HistoryRecorder
from src.common.logging_config import batch_scope, get_logger
from src.common.models import BatchResult, StatementDocument
from src.core.analytics import summarize
from src.core.consolidator import StatementConsolidator
from src.core.deduplicator import DuplicateDetector
from src.core.homogeneity import validate_homogeneity
from src.core.reconciler import BalanceReconciler
from .assembler import DocumentAssembler
from .config.settings import StatementConfig, DEFAULT_CONFIG
from .decoder import RecordDecoder
from .exceptions import CurrencyMismatch, StatementError
from .observations import ObservationExtractor

logger = get_logger(__name__)


class StatementPipeline:
    """
    Main entry point for turning statement field-trees into a ledger.

    Documents of a batch are processed strictly in upload order. Every
    process_batch call takes a new generation number; a result whose
    generation is no longer current was superseded by a newer batch.
    """

    def __init__(self, config: StatementConfig = DEFAULT_CONFIG, history: Optional[HistoryRecorder] = None):
        self.config = config
        self.decoder = RecordDecoder(config)
        self.assembler = DocumentAssembler(config, ObservationExtractor(config))
        self.consolidator = StatementConsolidator(config)
        self.reconciler = BalanceReconciler(config)
        self.detector = DuplicateDetector()
        self.history = history

        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, result: BatchResult) -> bool:
        return result.generation == self._generation

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def process_document(self, tree: Any, source_file: str = '') -> StatementDocument:
        """
        Decode and assemble one field-tree.

        Raises:
            MalformedDocument: record container missing or empty
        """
        classified = self.decoder.decode_tree(tree, filename=source_file)
        return self.assembler.assemble(classified, source_file=source_file)

    def process_batch(self, sources: Sequence[Tuple[str, Any]]) -> BatchResult:
        """
        Process (source_file, tree) pairs supplied in upload order.

        Returns:
            BatchResult with the merged ledger, its reconciliation report and
            the duplicate groups found in it

        Raises:
            ValueError: empty batch
            CurrencyMismatch: mixed currency markers across a multi-file batch
            MalformedDocument: any source without records
        """
        sources = list(sources)
        if not sources:
            raise ValueError("Empty batch")

        generation = self._next_generation()
        with batch_scope():
            return self._run_batch(sources, generation)

    def _run_batch(self, sources: List[Tuple[str, Any]], generation: int) -> BatchResult:
        names = [name for name, _ in sources]
        logger.info("Processing batch", generation=generation, sources=names)

        try:
            if len(sources) > 1:
                check = validate_homogeneity(names, self.config)
                if not check.accepted:
                    raise CurrencyMismatch(check.markers, names)

            documents: List[StatementDocument] = [
                self.process_document(tree, source_file=name) for name, tree in sources
            ]
            statement = self.consolidator.consolidate(documents, names)
        except StatementError as e:
            logger.error(f"Batch failed: {e}", error_type=type(e).__name__, sources=names)
            raise

        report = self.reconciler.reconcile(statement)
        duplicates = tuple(self.detector.detect(statement.transactions))

        result = BatchResult(
            statement=statement,
            report=report,
            duplicates=duplicates,
            generation=generation,
        )

        if self.history is not None:
            self._record_history(names, statement)

        logger.info(
            "Batch processed",
            generation=generation,
            transactions=len(statement.transactions),
            duplicates=len(duplicates),
            reconciled=report.is_valid,
        )
        return result

    def _record_history(self, names: List[str], statement) -> None:
        label = names[0] if len(names) == 1 else f"{len(names)} archivos combinados"
        try:
            self.history.save_entry(label, summarize(statement, self.config), statement.transactions)
        except (OSError, ValueError) as e:
            # History is one-way; the batch result stands without it
            logger.error(f"History write failed: {e}", error_type=type(e).__name__, label=label)

    def remove_duplicates(self, result: BatchResult) -> BatchResult:
        """New result without flagged duplicates, reconciled again."""
        kept = self.detector.remove_flagged(result.statement.transactions, result.duplicates)
        statement = replace(result.statement, transactions=kept)
        return BatchResult(
            statement=statement,
            report=self.reconciler.reconcile(statement),
            duplicates=(),
            generation=result.generation,
        )
