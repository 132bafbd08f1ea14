"""
Configuration Loader

Builds StatementConfig objects from JSON override files.
"""
import os
import json
from decimal import Decimal
from typing import Any, Dict, Optional

from src.common.logging_config import get_logger
from src.common.models import BalanceKind
from .settings import StatementConfig, ChannelMarker

logger = get_logger(__name__)


def load_config(config_path: Optional[str] = None) -> StatementConfig:
    """
    Load a StatementConfig, applying overrides from a JSON file.

    Args:
        config_path: Path to a .json file. None or a missing file yields defaults.

    Returns:
        StatementConfig with every key present in the file overridden
    """
    if not config_path:
        return StatementConfig()

    if not os.path.exists(config_path):
        logger.warning(f"Config file not found, using defaults: {config_path}", config_path=config_path)
        return StatementConfig()

    with open(config_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    config = config_from_dict(data)
    logger.debug(f"Loaded config: {config_path}", keys=sorted(data.keys()))
    return config


def config_from_dict(data: Dict[str, Any]) -> StatementConfig:
    """Converts a plain dict (as found in JSON) to a StatementConfig."""
    known = set(StatementConfig.__dataclass_fields__)
    overrides = {}

    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}", key=key)
            continue
        overrides[key] = _coerce(key, value)

    return StatementConfig(**overrides)


def _coerce(key: str, value: Any) -> Any:
    if key == 'balance_phrases':
        return [(phrase, BalanceKind(kind)) for phrase, kind in value]
    if key == 'channel_markers':
        return [ChannelMarker(**m) for m in value]
    if key == 'reconciliation_tolerance':
        return Decimal(str(value))
    if key in ('credit_codes', 'debit_codes'):
        return tuple(str(code).strip().lower() for code in value)
    if key == 'record_fields':
        merged = StatementConfig().record_fields
        merged.update(value)
        return merged
    return value
