"""
History Recorder

Keeps a short JSONL log of processed batches: a compact summary plus a
preview of the first transactions. Written after successful runs only;
the processing pipeline never reads it back.
"""
import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.common.logging_config import get_logger

logger = get_logger(__name__)

HISTORY_FILE = Path(__file__).parent.parent.parent / "data" / "history.jsonl"


class HistoryRecorder:
    """Most-recent-N batch history stored as JSON lines."""

    def __init__(self, history_file: Optional[Path] = None, limit: int = 10, preview_size: int = 10):
        self.history_file = Path(history_file or HISTORY_FILE)
        self.limit = limit
        self.preview_size = preview_size

    @classmethod
    def from_config(cls, config, history_file: Optional[Path] = None) -> "HistoryRecorder":
        """Recorder sized by StatementConfig.history_limit / history_preview_size."""
        return cls(history_file, limit=config.history_limit, preview_size=config.history_preview_size)

    def build_entry(self, filename: str, summary: Dict[str, Any], transactions) -> Dict[str, Any]:
        return {
            "id": uuid.uuid4().hex,
            "filename": filename,
            "processed_at": datetime.now().isoformat(),
            "summary": summary,
            "transactions_preview": [t.to_dict() for t in list(transactions)[:self.preview_size]],
        }

    def save_entry(self, filename: str, summary: Dict[str, Any], transactions) -> Dict[str, Any]:
        """
        Prepend an entry and trim the file to the newest `limit` entries.

        Args:
            filename: Batch label (single filename or "N archivos combinados")
            summary: Output of analytics.summarize
            transactions: Ledger rows; only the first preview_size are stored
        """
        entry = self.build_entry(filename, summary, transactions)
        entries = [entry] + self.get_history()
        entries = entries[:self.limit]

        self.history_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.history_file, 'w', encoding='utf-8') as f:
            for item in entries:
                f.write(json.dumps(item, ensure_ascii=False, default=str) + '\n')

        logger.debug("History entry saved", filename=filename, entries=len(entries))
        return entry

    def get_history(self) -> List[Dict[str, Any]]:
        """Entries, most recent first."""
        if not self.history_file.exists():
            return []

        entries = []
        with open(self.history_file, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip():
                    entries.append(json.loads(line))
        return entries

    def delete_entry(self, entry_id: str) -> None:
        entries = [e for e in self.get_history() if e.get('id') != entry_id]
        with open(self.history_file, 'w', encoding='utf-8') as f:
            for item in entries:
                f.write(json.dumps(item, ensure_ascii=False, default=str) + '\n')

    def clear_history(self) -> None:
        if self.history_file.exists():
            self.history_file.unlink()
