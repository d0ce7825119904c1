"""Persisted completion state for setup tasks."""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict

from devsetup.errors import FilesystemError


class CompletionStore:
    """Remembers which task identities have finished (state.json).

    Example:
        store = CompletionStore(Path.home() / '.devsetup' / 'state.json')
        if not store.is_completed('setup-git-ssh[work]'):
            ...
            store.mark_completed('setup-git-ssh[work]')
    """

    def __init__(self, state_file: Path):
        self.state_file = state_file

    def _load(self) -> Dict[str, str]:
        if not self.state_file.exists():
            return {}
        try:
            data = json.loads(self.state_file.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed state file {self.state_file}: {e}") from e
        except OSError as e:
            raise FilesystemError("Wasn't able to read task state", self.state_file) from e
        completed = data.get('completed', {}) if isinstance(data, dict) else None
        if not isinstance(completed, dict):
            raise ValueError(f"Invalid state file schema in {self.state_file}")
        return completed

    @property
    def completed(self) -> Dict[str, str]:
        """Task identity -> ISO 8601 completion time."""
        return self._load()

    def is_completed(self, type_id: str) -> bool:
        return type_id in self._load()

    def mark_completed(self, type_id: str) -> None:
        """Record type_id as done and persist."""
        completed = self._load()
        completed[type_id] = datetime.now().isoformat(timespec='seconds')
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(json.dumps({'completed': completed}, indent=2))
        except OSError as e:
            raise FilesystemError("Wasn't able to write task state", self.state_file) from e
