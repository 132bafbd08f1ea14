"""
Observation Extractor

Mines payer, account, card, channel and concept details out of the free-text
narrative ("observ") of each transaction record.

Extraction is rule-driven: OBSERVATION_RULES is an ordered table of
independent ExtractionRule objects. For every field the first rule that
matches wins. A field no rule matches stays ''. Nothing here raises on
unexpected narrative content.
"""
import html
import re
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Sequence

from src.common.models import ParsedTransaction
from .config.settings import StatementConfig, DEFAULT_CONFIG

EXTRACTED_FIELDS = (
    'payer_name',
    'payer_national_id',
    'masked_card',
    'origin_account',
    'beneficiary_account',
    'channel',
    'concept',
)


@dataclass(frozen=True)
class ExtractionRule:
    """
    One narrative pattern feeding one transaction field.

    Attributes:
        field: Target ParsedTransaction field
        pattern: Compiled regex; group 1 holds the value
        transform: Applied to group 1 when the pattern matches
    """
    field: str
    pattern: re.Pattern
    transform: Callable[[str], str] = str.strip

    def apply(self, text: str) -> Optional[str]:
        match = self.pattern.search(text or '')
        if not match:
            return None
        return self.transform(match.group(1))


OBSERVATION_RULES = (
    ExtractionRule('payer_name', re.compile(r'ORDENANTE NOMBRE:([^|]+)', re.IGNORECASE)),
    ExtractionRule('payer_name', re.compile(r'ORDENADA POR:\s*(.+?)\s*(?:PAN:|$)', re.IGNORECASE | re.DOTALL)),
    ExtractionRule('payer_national_id', re.compile(r'CI:(\d+)', re.IGNORECASE)),
    ExtractionRule('masked_card', re.compile(r'(?:PAN|Tarjeta)(?:#|RED)?:\s*(\d+X+\d+)', re.IGNORECASE)),
    ExtractionRule('origin_account', re.compile(r'NUM_CUENTA="(\d+)"')),
    ExtractionRule('beneficiary_account', re.compile(r'BENEFICIARIO:\s*(\d+)', re.IGNORECASE)),
    ExtractionRule('concept', re.compile(r'DET_PAGO>([^<]+)<', re.IGNORECASE)),
)


def decode_narrative(text: str) -> str:
    """Unescape HTML entities (&lt;DET_PAGO&gt; -> <DET_PAGO>)."""
    return html.unescape(text or '')


def detect_channel(text: str, config: StatementConfig = DEFAULT_CONFIG) -> str:
    for channel in config.channel_markers:
        if any(marker in text for marker in channel.markers):
            return channel.label
    return ''


class ObservationExtractor:
    """
    Applies OBSERVATION_RULES plus channel and concept logic to narratives.
    """

    def __init__(self, config: StatementConfig = DEFAULT_CONFIG, rules: Sequence[ExtractionRule] = OBSERVATION_RULES):
        self.config = config
        self.rules = tuple(rules)

    def extract(self, narrative: str) -> Dict[str, str]:
        """
        Extract structured fields from an already decoded narrative.

        Returns:
            Dict with every name in EXTRACTED_FIELDS, '' where nothing matched
        """
        text = narrative or ''
        data = {name: '' for name in EXTRACTED_FIELDS}

        for rule in self.rules:
            if data.get(rule.field):
                continue
            value = rule.apply(text)
            if value:
                data[rule.field] = value

        data['channel'] = detect_channel(text, self.config)

        limit = self.config.concept_max_length
        if data['concept']:
            data['concept'] = data['concept'][:limit]
        else:
            data['concept'] = text.split('\n')[0][:limit]

        return data

    def enrich(self, record: Mapping[str, str], source_file: str = '') -> ParsedTransaction:
        """Build a ParsedTransaction from a transaction RawRecord."""
        fields = self.config.record_fields
        narrative = decode_narrative(record.get(fields['narrative']) or '')

        return ParsedTransaction(
            date=record.get(fields['date']) or '',
            reference_current=record.get(fields['reference_current']) or '',
            reference_origin=record.get(fields['reference_origin']) or '',
            amount=record.get(fields['amount']) or '',
            type_code=record.get(fields['type_code']) or '',
            narrative=narrative,
            source_file=source_file or '',
            **self.extract(narrative),
        )
