"""SSH key pair generation for per-host identities."""

from pathlib import Path
from typing import NamedTuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

from devsetup.errors import KeyGenerationError

KEY_TYPES = ('ed25519', 'rsa')
RSA_KEY_SIZE = 4096

_provider_checked = False


class KeyPair(NamedTuple):
    private_key: str
    public_key: str


def ensure_provider_available() -> None:
    """Check once per process that the crypto backend can create our keys.

    Safe to call repeatedly; only the first call does any work.

    Raises:
        KeyGenerationError: If ed25519 keys are not supported by the backend
    """
    global _provider_checked
    if _provider_checked:
        return
    try:
        ed25519.Ed25519PrivateKey.generate()
    except UnsupportedAlgorithm as e:
        raise KeyGenerationError(f"Crypto provider does not support ed25519: {e}") from e
    _provider_checked = True


def generate_key_pair(name: str, key_type: str = 'ed25519') -> KeyPair:
    """Generate a fresh SSH key pair.

    Args:
        name: Used as the public key comment
        key_type: 'ed25519' or 'rsa'

    Returns:
        KeyPair with OpenSSH private key (PEM) and one-line public key

    Example:
        >>> pair = generate_key_pair('alice')
        >>> pair.public_key.startswith('ssh-ed25519 ')
        True
    """
    if key_type not in KEY_TYPES:
        raise KeyGenerationError(f"Unsupported key type: {key_type}")
    ensure_provider_available()

    try:
        if key_type == 'rsa':
            key = rsa.generate_private_key(public_exponent=65537, key_size=RSA_KEY_SIZE)
        else:
            key = ed25519.Ed25519PrivateKey.generate()

        private_key = key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.OpenSSH,
            serialization.NoEncryption(),
        ).decode('ascii')
        public_key = key.public_key().public_bytes(
            serialization.Encoding.OpenSSH,
            serialization.PublicFormat.OpenSSH,
        ).decode('ascii')
    except (UnsupportedAlgorithm, ValueError) as e:
        raise KeyGenerationError(f"Failed to generate {key_type} key pair: {e}") from e

    return KeyPair(private_key=private_key, public_key=f"{public_key} {name}")


def read_public_key(key_path: Path) -> str:
    """Read public key content.

    Args:
        key_path: Path to the public key file

    Returns:
        Public key content as string
    """
    return key_path.read_text(encoding='ascii').strip()
