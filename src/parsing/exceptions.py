"""
Exceptions raised while turning statement field-trees into ledgers.

Only structural problems are errors. Balance discrepancies travel inside
ReconciliationReport and narrative extraction misses are silent.
"""
from typing import Iterable, Optional


class StatementError(Exception):
    """Base class for fatal statement-processing errors."""


class MalformedDocument(StatementError):
    """
    Raised when the record container is missing or holds zero records.

    No partial StatementDocument is produced for the offending source.
    """

    def __init__(self, message: str, filename: Optional[str] = None, sample_text: Optional[str] = None):
        self.filename = filename
        self.sample_text = sample_text

        details = []
        if filename:
            details.append(f"Archivo: {filename}")
        if sample_text:
            details.append(f"Muestra: {sample_text[:200]}...")

        full_message = f"{message}\n" + "\n".join(details) if details else message
        super().__init__(full_message)


class CurrencyMismatch(StatementError):
    """
    Raised when a multi-document merge mixes currency/account-type markers.
    """

    def __init__(self, markers: Iterable[str], filenames: Iterable[str] = ()):
        self.markers = tuple(markers)
        self.filenames = tuple(filenames)
        message = (
            "Los extractos pertenecen a cuentas de distinta moneda: "
            + ", ".join(self.markers)
        )
        if self.filenames:
            message += f" ({', '.join(self.filenames)})"
        super().__init__(message)
