"""JSON file history of processed requests"""

import json
import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class HistoryPage:
    """One page of history entries, newest first."""

    items: List[Dict[str, Any]]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.total else 0


_TEXT_FIELDS = ('input_text', 'action', 'output', 'created_at')


def _is_valid_entry(entry: Any) -> bool:
    if not isinstance(entry, dict):
        return False
    entry_id = entry.get('id')
    if not isinstance(entry_id, int) or isinstance(entry_id, bool):
        return False
    return all(isinstance(entry.get(field), str) for field in _TEXT_FIELDS)


class HistoryStore:
    """Simple JSON-based store for processed requests"""

    def __init__(self, history_file: str = "history.json"):
        self.history_file = history_file
        self.entries = self._load()

    def _load(self) -> List[Dict[str, Any]]:
        """Load entries from file"""
        if os.path.exists(self.history_file):
            try:
                with open(self.history_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if isinstance(data, list):
                    entries = [entry for entry in data if _is_valid_entry(entry)]
                    if len(entries) != len(data):
                        logger.warning(
                            f"Dropped {len(data) - len(entries)} malformed entries "
                            f"from {self.history_file}"
                        )
                    return entries
                logger.warning(f"Ignoring malformed history file {self.history_file}")
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Failed to load history: {e}")
        return []

    def _save(self):
        """Save entries to file"""
        try:
            with open(self.history_file, 'w', encoding='utf-8') as f:
                json.dump(self.entries, f, ensure_ascii=False, indent=2)
        except IOError as e:
            logger.error(f"Failed to save history: {e}")

    def add(self, input_text: str, action: str, output: str) -> Dict[str, Any]:
        """Record a processed request and return the stored entry"""
        next_id = max((entry['id'] for entry in self.entries), default=0) + 1
        entry = {
            'id': next_id,
            'input_text': input_text,
            'action': action,
            'output': output,
            'created_at': datetime.now().isoformat(),
        }
        self.entries.append(entry)
        self._save()
        return entry

    def page(self, page: int = 0, size: int = 5) -> HistoryPage:
        """Return a zero-based page of entries, newest first

        Args:
            page: Zero-based page index
            size: Number of entries per page

        Returns:
            HistoryPage with the selected entries
        """
        if page < 0:
            raise ValueError("page must not be negative")
        if size <= 0:
            raise ValueError("size must be positive")

        ordered = sorted(
            self.entries,
            key=lambda entry: (entry['created_at'], entry['id']),
            reverse=True,
        )
        start = page * size
        return HistoryPage(
            items=ordered[start:start + size],
            page=page,
            size=size,
            total=len(ordered),
        )

    def delete(self, entry_id: int) -> bool:
        """Delete an entry by id; returns False when it does not exist"""
        remaining = [entry for entry in self.entries if entry['id'] != entry_id]
        if len(remaining) == len(self.entries):
            logger.warning(f"History entry {entry_id} not found")
            return False
        self.entries = remaining
        self._save()
        logger.info(f"Deleted history entry {entry_id}")
        return True
