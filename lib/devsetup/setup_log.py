"""Event log for setup runs."""

from datetime import datetime
from pathlib import Path
from typing import Optional

import click


class SetupLog:
    """Appends timestamped events to setup.log.

    Events of a task carry its identity so interleaved runs can be told apart:

        [2026-10-19 10:00:00] INFO: [setup-git-ssh[work]] Successfully finished SSH git setup
    """

    def __init__(self, log_file: Path):
        self.log_file = log_file

    @staticmethod
    def format_event(message: str, level: str = 'INFO', type_id: Optional[str] = None) -> str:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        prefix = f'[{type_id}] ' if type_id else ''
        return f'[{timestamp}] {level}: {prefix}{message}\n'

    def log_event(self, message: str, level: str = 'INFO', type_id: Optional[str] = None) -> None:
        """Log an event to setup.log; failures only warn on stderr."""
        entry = self.format_event(message, level, type_id)
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with self.log_file.open('a', encoding='utf-8') as f:
                f.write(entry)
        except OSError as e:
            click.echo(f"Warning: Failed to write {self.log_file}: {e}", err=True)
