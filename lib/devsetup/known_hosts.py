"""Known-hosts trust bootstrap using OpenSSH tools."""

import subprocess
from pathlib import Path

from devsetup.errors import TrustRegistrationError
from devsetup.ssh_config import append_locked

SCAN_TIMEOUT = 10


def is_known_host(host: str, known_hosts: Path) -> bool:
    """Check if host already has an entry in known_hosts (hashed or not)."""
    if not known_hosts.exists():
        return False
    result = subprocess.run(
        ['ssh-keygen', '-F', host, '-f', str(known_hosts)],
        capture_output=True, text=True, check=False
    )
    return result.returncode == 0


def add_to_known_hosts(host: str, known_hosts: Path, timeout: int = SCAN_TIMEOUT) -> bool:
    """Scan host keys and append them (hashed) to known_hosts.

    Args:
        host: Host name to trust, e.g. 'github.com'
        known_hosts: Path to the known_hosts file
        timeout: ssh-keyscan timeout in seconds

    Returns:
        True if entries were added, False if host was already known

    Raises:
        TrustRegistrationError: If scanning fails or returns nothing
    """
    try:
        if is_known_host(host, known_hosts):
            return False

        result = subprocess.run(
            ['ssh-keyscan', '-H', '-T', str(timeout), host],
            capture_output=True, text=True, check=False,
            timeout=timeout + 5
        )
    except FileNotFoundError as e:
        raise TrustRegistrationError(f"OpenSSH tools not found: {e}", host) from e
    except subprocess.TimeoutExpired as e:
        raise TrustRegistrationError(f"Timed out scanning host keys of {host}", host) from e

    entries = result.stdout.strip()
    if not entries:
        raise TrustRegistrationError(
            f"No host keys returned for {host}: {result.stderr.strip()}", host
        )

    try:
        append_locked(known_hosts, entries + '\n', mode=0o644)
    except OSError as e:
        raise TrustRegistrationError(f"Failed to update {known_hosts}: {e}", host) from e
    return True
