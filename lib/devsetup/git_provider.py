"""Upload public keys to git hosting providers."""

from typing import Dict

import httpx

from devsetup.errors import TrustRegistrationError

# host -> (endpoint, auth header template)
PROVIDERS: Dict[str, tuple[str, str]] = {
    'github.com': ('https://api.github.com/user/keys', 'Bearer {token}'),
    'gitlab.com': ('https://gitlab.com/api/v4/user/keys', 'Bearer {token}'),
}

REQUEST_TIMEOUT = 30.0


def submit_public_key(host: str, public_key: str, title: str, token: str) -> None:
    """Register a public key with the provider's user account.

    Args:
        host: Provider host name ('github.com' or 'gitlab.com')
        public_key: OpenSSH public key line
        title: Label shown in the provider's key list
        token: Personal access token with key write scope

    Raises:
        TrustRegistrationError: Unknown provider or rejected request
    """
    provider = PROVIDERS.get(host.lower())
    if provider is None:
        raise TrustRegistrationError(f"No key upload API known for host {host}", host)

    url, auth = provider
    try:
        response = httpx.post(
            url,
            headers={
                'Authorization': auth.format(token=token),
                'Accept': 'application/json',
            },
            json={'title': title, 'key': public_key.strip()},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TrustRegistrationError(
            f"{host} rejected public key ({e.response.status_code}): {e.response.text[:200]}", host
        ) from e
    except httpx.HTTPError as e:
        raise TrustRegistrationError(f"Failed to upload public key to {host}: {e}", host) from e
