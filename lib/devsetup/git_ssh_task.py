"""Provision a per-host SSH identity for git.

Generates a key pair, adds it to ~/.ssh/config and trusts the host. The
public key can also be uploaded to the git provider (GitHub, GitLab).
"""

import socket
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from devsetup.errors import FilesystemError, ValidationError
from devsetup.setup_config import GIT_SSH_TASK_TYPE, TaskConfig
from devsetup.setup_log import SetupLog
from devsetup.ssh_config import (
    PRIVATE_KEY_MODE,
    append_locked,
    host_identity_files,
    render_host_block,
    write_private_file,
    write_public_file,
)
from devsetup.ssh_keys import KeyPair, generate_key_pair, read_public_key
from devsetup.state import CompletionStore
from devsetup.trust import TrustRegistrar


class TaskStatus(Enum):
    NOT_STARTED = 'not_started'
    RUNNING = 'running'
    SKIPPED = 'skipped'
    COMPLETED = 'completed'
    FAILED = 'failed'


def default_ssh_dir() -> Path:
    return Path.home() / '.ssh'


class SetupGitSshTask:
    """Generates an SSH key pair for one git host and registers it.

    Execution is at-most-once per task identity: once ``type_id`` is marked
    completed in the store, ``execute()`` returns without touching disk.

    Example:
        task = SetupGitSshTask('work', 'alice', 'github.com', store)
        task.execute()
        print(task.public_key)
    """

    TYPE = GIT_SSH_TASK_TYPE

    def __init__(self, id: str, name: str, host: str, store: CompletionStore,
                 ssh_dir: Optional[Path] = None,
                 registrar: Optional[TrustRegistrar] = None,
                 log: Optional[SetupLog] = None,
                 key_generator: Callable[[str], KeyPair] = generate_key_pair):
        """Initialize task.

        Args:
            id: Unique task identifier within the setup run
            name: User name, used for key file names and the config User
            host: Host name without "www", e.g. 'github.com'
            store: Records completed task identities across runs
            ssh_dir: SSH directory override. None uses ~/.ssh; any override
                other than ~/.ssh is isolated and skips trust registration.
                An empty string is rejected.
            registrar: Known-hosts / key upload collaborator
            log: Event log; None disables logging
            key_generator: Returns a fresh KeyPair for a name
        """
        self._id = id
        self._name = name
        self._host = host
        self._store = store
        self._ssh_dir_override = ssh_dir
        if ssh_dir is None:
            self.ssh_dir = default_ssh_dir()
        else:
            self.ssh_dir = Path(ssh_dir).expanduser().absolute()
        self._isolated = self.ssh_dir != default_ssh_dir()
        self._registrar = registrar or TrustRegistrar(self.ssh_dir)
        self._log = log
        self._key_generator = key_generator
        self._public_key: Optional[str] = None
        self.status = TaskStatus.NOT_STARTED
        self.validate()

    @classmethod
    def from_config(cls, config: TaskConfig, store: CompletionStore, **kwargs) -> 'SetupGitSshTask':
        """Create a task from its serialized configuration."""
        task = cls(config.id, config.name, config.host, store, **kwargs)
        task._public_key = config.public_key or None
        return task

    def to_config(self) -> TaskConfig:
        return TaskConfig(id=self._id, name=self._name, host=self._host,
                          public_key=self._public_key)

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._ensure_not_started('name')
        self._name = value

    @property
    def host(self) -> str:
        return self._host

    @host.setter
    def host(self, value: str) -> None:
        self._ensure_not_started('host')
        self._host = value

    @property
    def public_key(self) -> str:
        """Generated public key, empty until execute() succeeds."""
        return self._public_key or ''

    @property
    def type(self) -> str:
        return self.TYPE

    @property
    def type_id(self) -> str:
        """Identity used for log correlation and completion tracking."""
        return f'{self.TYPE}[{self._id}]'

    @property
    def key_filename(self) -> str:
        return f'{self._name}-{self._host}'

    @property
    def private_key_file(self) -> Path:
        return self.ssh_dir / f'{self.key_filename}.prv'

    @property
    def public_key_file(self) -> Path:
        return self.ssh_dir / f'{self.key_filename}.pub'

    @property
    def config_file(self) -> Path:
        return self.ssh_dir / 'config'

    @property
    def is_isolated(self) -> bool:
        """True when running against a non-default SSH directory.

        Fixed at construction so the mode cannot change before execute().
        """
        return self._isolated

    def validate(self) -> None:
        """Check task input.

        Raises:
            ValidationError: Listing every failing field and why
        """
        errors = {}
        for field in ('id', 'name', 'host'):
            value = getattr(self, f'_{field}')
            if not isinstance(value, str) or not value.strip():
                errors[field] = 'must not be empty'
            elif field != 'id' and (any(c.isspace() for c in value) or '/' in value):
                errors[field] = "must not contain whitespace or '/'"
        override = self._ssh_dir_override
        if isinstance(override, str) and not override.strip():
            errors['ssh_dir'] = 'must not be empty, omit it to use ~/.ssh'
        if errors:
            raise ValidationError(errors)

    def execute(self) -> TaskStatus:
        """Run the task unless its identity already completed.

        Returns:
            TaskStatus.SKIPPED or TaskStatus.COMPLETED

        Raises:
            ValidationError: Input is invalid
            SetupError: Any step failed; files already written are kept
        """
        self.validate()
        self.status = TaskStatus.RUNNING
        try:
            if self._store.is_completed(self.type_id):
                self._log_event('Task already executed', level='DEBUG')
                self.status = TaskStatus.SKIPPED
                return self.status

            self._log_event('Task not executed', level='DEBUG')
            self._prepare_ssh_dir()
            public_key = self._ensure_keys()
            self._append_to_config()

            # Only touch shared trust state for the real ~/.ssh
            if not self.is_isolated:
                self._register_trust(public_key)

            self._store.mark_completed(self.type_id)
            self._public_key = public_key
        except Exception as e:
            self.status = TaskStatus.FAILED
            self._log_event(f'Task failed: {e}', level='ERROR')
            raise

        self.status = TaskStatus.COMPLETED
        self._log_event('Successfully finished SSH git setup')
        return self.status

    def _ensure_not_started(self, field: str) -> None:
        if self.status is not TaskStatus.NOT_STARTED:
            raise RuntimeError(f"Cannot change {field} of {self.type_id} after execution started")

    def _log_event(self, message: str, level: str = 'INFO') -> None:
        if self._log:
            self._log.log_event(message, level=level, type_id=self.type_id)

    def _prepare_ssh_dir(self) -> None:
        if self.ssh_dir.is_dir():
            return
        if self.ssh_dir.exists():
            raise FilesystemError('Not a directory', self.ssh_dir)

        self._log_event(f'Directory does not exist: {self.ssh_dir}', level='DEBUG')
        try:
            self.ssh_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError('Failed to create directory', self.ssh_dir) from e
        self._log_event(f'Created directory: {self.ssh_dir}', level='DEBUG')

    def _ensure_keys(self) -> str:
        """Write a new key pair, or reuse one left by an unfinished run.

        Returns:
            Public key text
        """
        prv_file, pub_file = self.private_key_file, self.public_key_file

        if prv_file.exists() and pub_file.exists():
            try:
                prv_file.chmod(PRIVATE_KEY_MODE)
                public_key = read_public_key(pub_file)
            except (OSError, UnicodeDecodeError) as e:
                raise FilesystemError("Wasn't able to reuse ssh keys in", self.ssh_dir) from e
            self._log_event(f'Reusing existing ssh keys: {prv_file} {pub_file}')
            return public_key

        pair = self._key_generator(self._name)
        try:
            write_private_file(prv_file, pair.private_key)
            write_public_file(pub_file, pair.public_key + '\n')
        except (OSError, UnicodeEncodeError) as e:
            raise FilesystemError("Wasn't able to write ssh keys to", self.ssh_dir) from e

        self._log_event(f'Successfully generated and saved ssh keys: {prv_file} {pub_file}')
        return pair.public_key.strip()

    def _append_to_config(self) -> None:
        config_file = self.config_file
        try:
            identities = host_identity_files(config_file, self._host)
            if str(self.private_key_file) in identities:
                self._log_event(f'Entry for {self._host} already in ssh config: {config_file}')
                return
            if identities:
                # ssh uses the first matching Host block
                self._log_event(
                    f'{self._host} already configured with {", ".join(identities)}; '
                    f'the new entry in {config_file} will not be used by ssh',
                    level='WARN'
                )
            append_locked(config_file, render_host_block(self._host, self._name, self.private_key_file))
        except OSError as e:
            raise FilesystemError("Wasn't able to write ssh config", config_file) from e

        self._log_event(f'Successfully added entry to ssh config: {config_file}')

    def _register_trust(self, public_key: str) -> None:
        if self._registrar.register_known_host(self._host):
            self._log_event(f'Added {self._host} to known hosts')
        else:
            self._log_event(f'{self._host} already in known hosts', level='DEBUG')

        if self._registrar.upload_enabled:
            title = f'{self.key_filename} ({socket.gethostname()})'
            self._registrar.submit_public_key(self._host, public_key, title)
            self._log_event(f'Uploaded public key to {self._host}')
