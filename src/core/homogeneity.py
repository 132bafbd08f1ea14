"""
Currency / account-type homogeneity check for multi-document batches.

Each source identifier (usually the filename) is classified into one of the
configured markers, or left undetermined. A batch whose identifiers carry
more than one distinct marker cannot be merged.
"""
import re
from typing import Iterable, Optional

from src.common.logging_config import get_logger
from src.common.models import HomogeneityResult
from src.parsing.config.settings import StatementConfig, DEFAULT_CONFIG

logger = get_logger(__name__)


def classify_source(identifier: str, config: StatementConfig = DEFAULT_CONFIG) -> Optional[str]:
    """
    Returns the marker found in the identifier, or None when undetermined.
    Markers must appear as a standalone token ("extracto_CUP_enero.xml").
    An identifier naming several markers is undetermined.
    """
    found = []
    for marker in config.currency_markers:
        pattern = r'(?<![A-Za-z0-9])' + re.escape(marker) + r'(?![A-Za-z0-9])'
        if re.search(pattern, identifier or '', re.IGNORECASE):
            found.append(marker)
    if len(found) == 1:
        return found[0]
    return None


def validate_homogeneity(identifiers: Iterable[str], config: StatementConfig = DEFAULT_CONFIG) -> HomogeneityResult:
    """
    Accept the batch unless two different markers are present.
    Undetermined identifiers never cause a rejection.
    """
    identifiers = list(identifiers)
    markers = []
    for identifier in identifiers:
        marker = classify_source(identifier, config)
        if marker and marker not in markers:
            markers.append(marker)

    if len(markers) > 1:
        reason = f"Monedas mezcladas en el lote: {', '.join(markers)}"
        logger.warning("Batch rejected: mixed currency markers", markers=markers, sources=identifiers)
        return HomogeneityResult(accepted=False, markers=tuple(markers), reason=reason)

    return HomogeneityResult(accepted=True, markers=tuple(markers))
