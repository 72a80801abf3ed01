"""Identity adapters - resolve caller credentials to stable identities."""

from app.adapters.identity.api_key import ApiKeyIdentityVerifier
from app.adapters.identity.base import AbstractIdentityVerifier

__all__ = [
    "AbstractIdentityVerifier",
    "ApiKeyIdentityVerifier",
]
