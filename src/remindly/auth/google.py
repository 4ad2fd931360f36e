"""GoogleIdentityProvider - OAuth code exchange for federated sign-in."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from remindly.exceptions import UnauthenticatedError
from remindly.logging import get_logger, sanitize_for_log

logger = get_logger("auth")

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


@dataclass(frozen=True)
class FederatedProfile:
    """Identity asserted by an external provider."""

    subject: str
    email: str
    name: str
    avatar: str | None = None


class IdentityProvider(Protocol):
    """Resolves an authorization code to a verified profile."""

    def resolve(self, code: str, redirect_uri: str | None = None) -> FederatedProfile: ...


class GoogleIdentityProvider:
    """Exchanges Google OAuth authorization codes for user profiles."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str | None = None,
        token_url: str = GOOGLE_TOKEN_URL,
        userinfo_url: str = GOOGLE_USERINFO_URL,
    ) -> None:
        """Initialize the provider.

        Args:
            client_id: OAuth client ID
            client_secret: OAuth client secret
            redirect_uri: Redirect URI registered for the client
            token_url: Token endpoint (for testing)
            userinfo_url: Userinfo endpoint (for testing)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.token_url = token_url
        self.userinfo_url = userinfo_url
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=15.0)
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def resolve(self, code: str, redirect_uri: str | None = None) -> FederatedProfile:
        """Exchange an authorization code and fetch the signed-in user's profile.

        Raises:
            UnauthenticatedError: If Google rejects the code or the profile is incomplete
        """
        token = self._exchange_code(code, redirect_uri or self.redirect_uri)
        info = self._request("GET", self.userinfo_url, headers={"Authorization": f"Bearer {token}"})

        subject = info.get("sub")
        email = info.get("email")
        if not subject or not email:
            raise UnauthenticatedError("Google profile is missing an id or email")
        if info.get("email_verified") is False:
            raise UnauthenticatedError("Google email address is not verified")

        return FederatedProfile(
            subject=str(subject),
            email=str(email),
            name=str(info.get("name") or email),
            avatar=info.get("picture"),
        )

    def _exchange_code(self, code: str, redirect_uri: str | None) -> str:
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "authorization_code",
        }
        if redirect_uri:
            data["redirect_uri"] = redirect_uri
        payload = self._request("POST", self.token_url, data=data)
        access_token = payload.get("access_token")
        if not access_token:
            raise UnauthenticatedError("Google did not return an access token")
        return str(access_token)

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Google request to %s failed: %s", url, sanitize_for_log(str(e)))
            raise UnauthenticatedError("Google sign-in failed") from e

        if response.status_code != 200:
            logger.warning("Google %s %s returned %d", method, url, response.status_code)
            raise UnauthenticatedError("Google sign-in failed")
        return response.json()
