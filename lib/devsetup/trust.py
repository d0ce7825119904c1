"""Trust registration for newly provisioned SSH identities."""

from pathlib import Path
from typing import Optional

from devsetup import git_provider
from devsetup.errors import TrustRegistrationError
from devsetup.known_hosts import add_to_known_hosts


class TrustRegistrar:
    """Adds hosts to known_hosts and optionally uploads public keys.

    Example:
        registrar = TrustRegistrar(Path.home() / '.ssh', token=os.environ.get('DEVSETUP_GIT_TOKEN'))
        registrar.register_known_host('github.com')
        if registrar.upload_enabled:
            registrar.submit_public_key('github.com', pubkey, 'laptop')
    """

    def __init__(self, ssh_dir: Path, token: Optional[str] = None):
        self.known_hosts = ssh_dir / 'known_hosts'
        self._token = token

    @property
    def upload_enabled(self) -> bool:
        return bool(self._token)

    def register_known_host(self, host: str) -> bool:
        """Trust host's keys. Returns False if it was already known."""
        return add_to_known_hosts(host, self.known_hosts)

    def submit_public_key(self, host: str, public_key: str, title: str) -> None:
        """Upload public key to the provider behind host.

        Raises:
            TrustRegistrationError: Upload disabled, unsupported host or API failure
        """
        if not self._token:
            raise TrustRegistrationError("Public key upload requires an API token", host)
        git_provider.submit_public_key(host, public_key, title, self._token)
