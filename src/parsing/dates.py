"""
Statement date handling.

Statement dates are day/month/year text ("05/01/2024", "5/1/2024").
The convention is declared once in StatementConfig.date_format and used
for sorting, tie-breaking, filtering and running balances alike.
"""
from datetime import date, datetime
from typing import Optional

DEFAULT_DATE_FORMAT = '%d/%m/%Y'


def parse_statement_date(text: str, date_format: str = DEFAULT_DATE_FORMAT) -> Optional[date]:
    """Returns the parsed date, or None for blank/unparseable text."""
    if not text:
        return None
    try:
        return datetime.strptime(str(text).strip(), date_format).date()
    except ValueError:
        return None


def sort_key(text: str, date_format: str = DEFAULT_DATE_FORMAT) -> date:
    """Chronological key; unparseable dates sort before everything else."""
    return parse_statement_date(text, date_format) or date.min
