"""Identity verification for FastAPI endpoints.

Provides:
- `Identity` Pydantic model for the authenticated caller
- `JwtIdentityVerifier` to decode/validate provider-signed JWTs
- `RemoteIdentityVerifier` to ask the identity provider's user endpoint
- `get_identity_verifier` / `get_current_identity` FastAPI dependencies
"""

import logging
from typing import Protocol

import httpx
import jwt
from fastapi import Depends, Request
from pydantic import BaseModel

from .config import Settings, get_settings
from .errors import IdentityProviderUnavailable, InternalError, InvalidCredential, MissingCredential

log = logging.getLogger("softai.auth")

BEARER_PREFIX = "Bearer "


class Identity(BaseModel):
    """Authenticated caller resolved from a bearer credential."""
    user_id: str
    email: str | None = None
    roles: list[str] = []


class IdentityVerifier(Protocol):
    async def verify(self, credential: str) -> Identity: ...


class JwtIdentityVerifier:
    """Validate JWTs issued by the identity provider with PyJWT."""

    def __init__(
        self,
        key: str,
        algorithms: list[str],
        audience: str | None = None,
        issuer: str | None = None,
    ) -> None:
        self.key = key
        self.algorithms = algorithms
        self.audience = audience
        self.issuer = issuer

    async def verify(self, credential: str) -> Identity:
        """Decode and validate `credential` and return the caller `Identity`.

        Validates signature, expiration and the presence of `sub`; audience
        and issuer are checked only when configured.

        Raises:
            InvalidCredential: on any validation failure.
        """
        try:
            payload = jwt.decode(
                credential,
                self.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_exp": True,
                    "verify_aud": self.audience is not None,
                    "verify_iss": self.issuer is not None,
                    "require": ["exp", "sub"],
                },
            )
        except jwt.PyJWTError as exc:
            log.info(f"token rejected: {exc.__class__.__name__}")
            raise InvalidCredential() from exc
        role = payload.get("role")
        return Identity(
            user_id=str(payload["sub"]),
            email=payload.get("email"),
            roles=payload.get("roles") or ([role] if role else []),
        )


class RemoteIdentityVerifier:
    """Resolve a token by calling the identity provider's `/auth/v1/user` endpoint."""

    def __init__(self, base_url: str, api_key: str | None = None, timeout: float = 10.0,
                 transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def verify(self, credential: str) -> Identity:
        headers = {"Authorization": f"{BEARER_PREFIX}{credential}"}
        if self.api_key:
            headers["apikey"] = self.api_key
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as exc:
            log.error(f"identity provider call failed: {exc!r}")
            raise IdentityProviderUnavailable() from exc

        if response.status_code != 200:
            raise InvalidCredential()
        try:
            data = response.json()
        except ValueError as exc:
            raise IdentityProviderUnavailable("Identity provider returned an unreadable user") from exc
        if not isinstance(data, dict) or not data.get("id"):
            raise InvalidCredential()
        role = data.get("role")
        return Identity(user_id=str(data["id"]), email=data.get("email"), roles=[role] if role else [])


def build_identity_verifier(s: Settings) -> IdentityVerifier:
    """Pick the verifier configured in `s`; the remote provider wins when both are set."""
    if s.IDENTITY_PROVIDER_URL:
        return RemoteIdentityVerifier(s.IDENTITY_PROVIDER_URL, s.IDENTITY_PROVIDER_API_KEY,
                                      s.IDENTITY_PROVIDER_TIMEOUT)
    if s.JWT_KEY:
        return JwtIdentityVerifier(s.JWT_KEY, s.JWT_ALGORITHMS, s.OIDC_AUDIENCE, s.OIDC_ISSUER)
    raise InternalError("Either IDENTITY_PROVIDER_URL or JWT_KEY must be configured.")


def get_identity_verifier() -> IdentityVerifier:
    """FastAPI dependency returning the verifier built from settings."""
    return build_identity_verifier(get_settings())


def extract_credential(authorization: str | None) -> str:
    """Return the token carried by an `Authorization` header value.

    Raises:
        MissingCredential: the header is absent.
        InvalidCredential: the header is present but carries no token.
    """
    if authorization is None:
        raise MissingCredential()
    token = authorization[len(BEARER_PREFIX):] if authorization.startswith(BEARER_PREFIX) else authorization
    token = token.strip()
    if not token:
        raise InvalidCredential()
    return token


async def get_current_identity(
    request: Request,
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Identity:
    """FastAPI dependency resolving the caller from the Authorization header.

    Raises:
        MissingCredential: 401 if the header is missing.
        InvalidCredential: 401 if the token is rejected or expired.
    """
    credential = extract_credential(request.headers.get("Authorization"))
    return await verifier.verify(credential)
