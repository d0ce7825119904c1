"""Error types raised while provisioning a developer machine."""

from pathlib import Path
from typing import Dict, Optional


class SetupError(RuntimeError):
    """A setup task failed and the current run must stop."""


class FilesystemError(SetupError):
    """Creating, writing or securing a file under the SSH directory failed."""

    def __init__(self, message: str, path: Path):
        super().__init__(f"{message}: {path}")
        self.path = path


class KeyGenerationError(SetupError):
    """The crypto provider is missing or could not produce a key pair."""


class TrustRegistrationError(SetupError):
    """Adding a host to known_hosts or uploading a public key failed."""

    def __init__(self, message: str, host: Optional[str] = None):
        super().__init__(message)
        self.host = host


class ValidationError(ValueError):
    """Task input is missing or malformed.

    Attributes:
        errors: Field name -> reason, one entry per failing field
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        details = ', '.join(f"{field}: {reason}" for field, reason in sorted(self.errors.items()))
        super().__init__(f"Invalid task input ({details})")
