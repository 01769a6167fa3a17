"""Identity collaborator: signing keys and bearer-token verification."""

from readme_studio.identity.keys import init_keys, load_private_key, load_public_key
from readme_studio.identity.tokens import Identity, TokenVerifier, bearer_token, issue_token

__all__ = [
    "Identity",
    "TokenVerifier",
    "bearer_token",
    "init_keys",
    "issue_token",
    "load_private_key",
    "load_public_key",
]
