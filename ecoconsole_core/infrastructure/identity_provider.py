"""Identity provider client (Supabase Auth / GoTrue REST API).

Two operations are needed by the console:
1. Resolve a partner's access token to the user it belongs to
2. Send an invitation email to a newly approved partner (admin API)

Usage:
    client = IdentityProviderClient(
        base_url="https://project.supabase.co",
        service_role_key="...",
    )

    user = await client.get_user(access_token)
    invited = await client.invite_user_by_email(
        "ops@example.org",
        data={"role": "ORG_MANAGER", "organization_name": "Green Seoul"},
        redirect_to="https://console.example.org/auth/confirm",
    )
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects or fails a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class IdentityUser:
    """A user record as returned by the identity provider."""

    id: str
    email: Optional[str] = None
    user_metadata: dict[str, Any] = field(default_factory=dict)
    invited_at: Optional[str] = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "IdentityUser":
        # The invite endpoint returns the user at top level; some versions wrap it
        if "user" in data and isinstance(data["user"], dict):
            data = data["user"]
        if not data.get("id"):
            raise IdentityProviderError("identity provider response has no user id")
        return cls(
            id=data["id"],
            email=data.get("email"),
            user_metadata=data.get("user_metadata") or {},
            invited_at=data.get("invited_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "user_metadata": self.user_metadata,
            "invited_at": self.invited_at,
        }


class IdentityProviderClient:
    """Thin async client for the hosted auth service."""

    def __init__(
        self,
        base_url: str,
        service_role_key: Optional[str] = None,
        timeout: float = 15.0,
    ):
        """Initialize the client.

        Args:
            base_url: Project URL (the ``/auth/v1`` prefix is added here).
            service_role_key: Key for admin endpoints; also sent as ``apikey``.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout = timeout

    @property
    def auth_url(self) -> str:
        return f"{self.base_url}/auth/v1"

    def _headers(self, bearer: Optional[str] = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.service_role_key:
            headers["apikey"] = self.service_role_key
        token = bearer or self.service_role_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return str(
                data.get("msg")
                or data.get("message")
                or data.get("error_description")
                or data.get("error")
                or data
            )
        return str(data)

    async def get_user(self, access_token: str) -> IdentityUser:
        """Resolve an access token to its user.

        Raises:
            IdentityProviderError: If the token is invalid or the call fails.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.auth_url}/user",
                    headers=self._headers(bearer=access_token),
                )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Failed to reach identity provider: {e}") from e

        if response.status_code != 200:
            raise IdentityProviderError(
                f"Failed to resolve user: {self._error_message(response)}",
                status_code=response.status_code,
            )

        return IdentityUser.from_response(response.json())

    async def invite_user_by_email(
        self,
        email: str,
        data: Optional[dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> IdentityUser:
        """Send an invitation email and create the invited user.

        Args:
            email: Address to invite.
            data: User metadata attached to the invited account.
            redirect_to: Where the invitation link lands after confirmation.

        Returns:
            The invited user.

        Raises:
            IdentityProviderError: If the invite could not be sent.
        """
        if not self.service_role_key:
            raise IdentityProviderError("service role key is not configured")

        params = {"redirect_to": redirect_to} if redirect_to else None

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.auth_url}/invite",
                    json={"email": email, "data": data or {}},
                    params=params,
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"Failed to reach identity provider: {e}") from e

        if response.status_code not in (200, 201):
            raise IdentityProviderError(
                f"Invite failed: {self._error_message(response)}",
                status_code=response.status_code,
            )

        return IdentityUser.from_response(response.json())
