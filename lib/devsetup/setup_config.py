"""Parse setup.yml and (de)serialize task configuration."""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

GIT_SSH_TASK_TYPE = 'setup-git-ssh'

KNOWN_TASK_FIELDS = {'type', 'id', 'name', 'host', 'public_key'}
KNOWN_CONFIG_FIELDS = {'id', 'name', 'host', 'public_key'}


@dataclass
class TaskConfig:
    """Serializable state of one git SSH setup task."""
    id: str
    name: str
    host: str
    public_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TaskConfig':
        """Build config from a mapping, rejecting unknown keys."""
        unknown = set(data.keys()) - KNOWN_CONFIG_FIELDS
        if unknown:
            raise ValueError(f"Unknown task field(s): {', '.join(sorted(unknown))}")
        missing = {'id', 'name', 'host'} - set(data.keys())
        if missing:
            raise ValueError(f"Missing task field(s): {', '.join(sorted(missing))}")
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            host=str(data['host']),
            public_key=data.get('public_key'),
        )


def load_setup_file(setup_file: Path) -> List[TaskConfig]:
    """Load the ordered task list from a setup.yml file.

    Example file:
        tasks:
          - type: setup-git-ssh
            id: work
            name: alice
            host: github.com

    Raises:
        FileNotFoundError: If setup_file does not exist
        ValueError: Unknown fields, unknown task types or bad structure
    """
    with open(setup_file, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{setup_file} must contain a mapping")
    unknown = set(data.keys()) - {'tasks'}
    if unknown:
        raise ValueError(f"Unknown setup file field(s): {', '.join(sorted(unknown))}")

    tasks = data.get('tasks') or []
    if not isinstance(tasks, list):
        raise ValueError(f"'tasks' in {setup_file} must be a list")

    configs = []
    for entry in tasks:
        if not isinstance(entry, dict):
            raise ValueError(f"Task entries in {setup_file} must be mappings")
        unknown = set(entry.keys()) - KNOWN_TASK_FIELDS
        if unknown:
            raise ValueError(f"Unknown task field(s): {', '.join(sorted(unknown))}")
        task_type = entry.get('type', GIT_SSH_TASK_TYPE)
        if task_type != GIT_SSH_TASK_TYPE:
            raise ValueError(f"Unknown task type: {task_type}")
        configs.append(TaskConfig.from_dict({k: v for k, v in entry.items() if k != 'type'}))
    return configs
