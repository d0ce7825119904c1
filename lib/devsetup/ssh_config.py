"""Writing key files and host blocks under an SSH directory."""

import fcntl
import os
from pathlib import Path
from typing import List

PRIVATE_KEY_MODE = 0o600
CONFIG_MODE = 0o600


def render_host_block(host: str, user: str, identity_file: Path) -> str:
    """Render one ssh_config host block.

    Example:
        >>> print(render_host_block('github.com', 'alice', Path('/home/a/.ssh/alice-github.com.prv')), end='')
        Host github.com
            User alice
            HostName github.com
            IdentityFile /home/a/.ssh/alice-github.com.prv
    """
    lf = os.linesep
    return (
        f"Host {host}{lf}"
        f"    User {user}{lf}"
        f"    HostName {host}{lf}"
        f"    IdentityFile {identity_file}{lf}"
    )


def host_identity_files(config_file: Path, host: str) -> List[str]:
    """IdentityFile values of every block whose Host line is exactly host."""
    if not config_file.exists():
        return []

    identities = []
    current_host = None
    with open(config_file, encoding='utf-8', errors='replace') as f:
        for line in f:
            parts = line.strip().split(None, 1)
            if len(parts) != 2:
                continue
            keyword, value = parts[0].lower(), parts[1].strip()
            if keyword == 'host':
                current_host = value
            elif keyword == 'identityfile' and current_host == host:
                identities.append(value)
    return identities


def append_locked(path: Path, text: str, mode: int = CONFIG_MODE) -> None:
    """Append text to a file while holding an exclusive lock on it.

    The file is created with the given mode when missing; existing bytes
    are never rewritten.
    """
    fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, mode)
    with os.fdopen(fd, 'a', encoding='utf-8', newline='') as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            f.write(text)
            f.flush()
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def write_private_file(path: Path, text: str) -> None:
    """Write an owner-only (0600) US-ASCII file.

    The mode is applied at creation and again on the open descriptor so a
    pre-existing file or a permissive umask never leaves it readable.
    """
    data = text.encode('ascii')
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_KEY_MODE)
    with os.fdopen(fd, 'wb') as f:
        os.fchmod(f.fileno(), PRIVATE_KEY_MODE)
        f.write(data)


def write_public_file(path: Path, text: str) -> None:
    """Write a US-ASCII file with default permissions."""
    path.write_bytes(text.encode('ascii'))
