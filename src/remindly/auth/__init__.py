"""Auth Gateway - credentials, tokens, and federated sign-in."""

from remindly.auth.google import FederatedProfile, GoogleIdentityProvider, IdentityProvider
from remindly.auth.passwords import PasswordHasher
from remindly.auth.service import AuthResult, AuthService
from remindly.auth.tokens import TokenIssuer

__all__ = [
    "AuthResult",
    "AuthService",
    "FederatedProfile",
    "GoogleIdentityProvider",
    "IdentityProvider",
    "PasswordHasher",
    "TokenIssuer",
]
