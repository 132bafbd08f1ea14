"""
Statement Parsing Module

Turns "Estado de Cuenta" field-trees into StatementDocuments:
- Record decoding (balance anchors vs transactions)
- Narrative observation extraction
- Document assembly

Batch orchestration lives in src.parsing.pipeline.
"""

# Configuration
from .config.settings import StatementConfig, ChannelMarker, DEFAULT_CONFIG
from .config.loader import load_config

# Errors
from .exceptions import StatementError, MalformedDocument, CurrencyMismatch

# Stages
from .decoder import RecordDecoder, ClassifiedRecord, records_from_tree
from .observations import ObservationExtractor, ExtractionRule, OBSERVATION_RULES
from .assembler import DocumentAssembler

__all__ = [
    # Config
    'StatementConfig',
    'ChannelMarker',
    'DEFAULT_CONFIG',
    'load_config',
    # Errors
    'StatementError',
    'MalformedDocument',
    'CurrencyMismatch',
    # Stages
    'RecordDecoder',
    'ClassifiedRecord',
    'records_from_tree',
    'ObservationExtractor',
    'ExtractionRule',
    'OBSERVATION_RULES',
    'DocumentAssembler',
]
