"""
Record Decoder

Finds the repeated record container inside a generic field-tree and
classifies every record as a balance anchor or a transaction.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, List, Mapping, Optional

from src.common.logging_config import get_logger
from src.common.models import BalanceKind
from .config.settings import StatementConfig, DEFAULT_CONFIG
from .exceptions import MalformedDocument

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClassifiedRecord:
    """A raw record tagged with its balance kind (None for transactions)."""
    record: Mapping[str, str]
    kind: Optional[BalanceKind] = None

    @property
    def is_transaction(self) -> bool:
        return self.kind is None


def element_text(element: Any) -> str:
    """
    Text of a field-tree leaf.
    Leaves are plain strings or nodes carrying '_text' or '_cdata'.
    """
    if element is None:
        return ''
    if isinstance(element, str):
        return element
    if isinstance(element, Mapping):
        if element.get('_text'):
            return str(element['_text'])
        if element.get('_cdata'):
            return str(element['_cdata'])
    return ''


def records_from_tree(tree: Any, config: StatementConfig = DEFAULT_CONFIG, filename: str = None) -> List[Mapping[str, str]]:
    """
    Resolve the record container of a field-tree into flat RawRecords.

    Raises:
        MalformedDocument: root node missing, record node missing, or no records
    """
    if not isinstance(tree, Mapping) or not tree.get(config.root_key):
        raise MalformedDocument(
            f"Formato inválido: no se encontró {config.root_key}",
            filename=filename,
            sample_text=_sample(tree),
        )

    container = tree[config.root_key]
    records = container.get(config.record_key) if isinstance(container, Mapping) else None
    if records is None:
        raise MalformedDocument("No se encontraron registros en el archivo", filename=filename)

    if isinstance(records, Mapping):
        records = [records]

    return [_flatten(r) for r in records]


def _flatten(node: Any) -> Mapping[str, str]:
    if not isinstance(node, Mapping):
        return MappingProxyType({})
    return MappingProxyType({key: element_text(value) for key, value in node.items()})


def _sample(tree: Any) -> Optional[str]:
    if tree is None:
        return None
    return repr(tree)


class RecordDecoder:
    """
    Classifies RawRecords by the balance phrases found in their narrative.
    """

    def __init__(self, config: StatementConfig = DEFAULT_CONFIG):
        self.config = config
        self.narrative_field = config.record_fields['narrative']

    def classify(self, record: Mapping[str, str]) -> Optional[BalanceKind]:
        """Returns the balance kind of the record, or None for a transaction."""
        narrative = record.get(self.narrative_field) or ''
        for phrase, kind in self.config.balance_phrases:
            if phrase in narrative:
                return kind
        return None

    def decode(self, records, filename: str = None) -> List[ClassifiedRecord]:
        """
        Classify every record of the container, preserving source order.

        Raises:
            MalformedDocument: container missing or empty
        """
        if records is None:
            raise MalformedDocument("No se encontraron registros en el archivo", filename=filename)

        records = list(records)
        if not records:
            raise MalformedDocument("El archivo no contiene registros", filename=filename)

        classified = [ClassifiedRecord(record=r, kind=self.classify(r)) for r in records]

        anchors = sum(1 for c in classified if not c.is_transaction)
        logger.debug(
            "Decoded records",
            filename=filename,
            records=len(classified),
            anchors=anchors,
            transactions=len(classified) - anchors,
        )
        return classified

    def decode_tree(self, tree: Any, filename: str = None) -> List[ClassifiedRecord]:
        """Shortcut for records_from_tree followed by decode."""
        return self.decode(records_from_tree(tree, self.config, filename), filename=filename)
