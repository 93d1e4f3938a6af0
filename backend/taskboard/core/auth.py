"""JWT authentication and tenant resolution for FastAPI."""

from dataclasses import dataclass
from functools import lru_cache

import jwt as pyjwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from taskboard.core.config import get_settings
from taskboard.core.exceptions import ForbiddenError
from taskboard.core.logging import bind_actor_context
from taskboard.domain.access import Actor

_bearer_scheme = HTTPBearer(auto_error=False)


def _jwks_url() -> str:
    settings = get_settings()
    if settings.auth_jwks_url:
        return settings.auth_jwks_url
    if not settings.auth_issuer:
        raise ValueError("auth_issuer is not configured")
    return f"{settings.auth_issuer.rstrip('/')}/.well-known/jwks.json"


@lru_cache
def get_jwks_client() -> PyJWKClient:
    """Create a cached JWKS client pointing at the identity provider."""
    return PyJWKClient(_jwks_url(), cache_keys=True, lifespan=300)


@dataclass(frozen=True)
class AuthUser:
    """Authenticated identity extracted from a verified JWT."""

    user_id: str
    claims: dict

    @property
    def email(self) -> str:
        return self.claims.get("email") or ""

    @property
    def name(self) -> str:
        return self.claims.get("name") or self.claims.get("nickname") or ""


def decode_token(token: str) -> AuthUser:
    """Verify and decode an RS256 access token.

    Raises ``HTTPException(401)`` on any validation failure.
    """
    settings = get_settings()
    if not settings.auth_issuer or not settings.auth_audience:
        raise HTTPException(status_code=500, detail="Authentication is misconfigured")

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        payload = pyjwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            options={"require": ["sub", "exp"]},
        )
    except pyjwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except pyjwt.InvalidAudienceError:
        raise HTTPException(status_code=401, detail="Invalid audience")
    except pyjwt.InvalidIssuerError:
        raise HTTPException(status_code=401, detail="Invalid issuer")
    except pyjwt.MissingRequiredClaimError as exc:
        raise HTTPException(status_code=401, detail=f"Missing required claim: {exc}")
    except pyjwt.PyJWKClientError as exc:
        raise HTTPException(status_code=401, detail=f"Signing key not found: {exc}")
    except pyjwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid token: {exc}")

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token missing sub claim")

    return AuthUser(user_id=sub, claims=payload)


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthUser:
    """FastAPI dependency that extracts and validates the bearer JWT.

    Usage::

        @router.get("/protected")
        async def protected(user: AuthUser = Depends(require_auth)):
            ...
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    user = decode_token(credentials.credentials)

    # Set user_id on request state for downstream use (error handlers)
    request.state.user_id = user.user_id
    return user


async def require_actor(request: Request, user: AuthUser = Depends(require_auth)) -> Actor:
    """FastAPI dependency resolving the caller to a tenant membership.

    Raises ``ForbiddenError`` when the identity belongs to no tenant.
    """
    from taskboard.db.base import get_session_factory
    from taskboard.services.tenant_service import TenantService

    factory = get_session_factory()
    async with factory() as session:
        actor = await TenantService(session).resolve_actor(user.user_id, user.email, user.name)

    if actor is None:
        raise ForbiddenError("No tenant assigned to this user yet.")

    request.state.tenant_id = actor.tenant_id
    bind_actor_context(actor.tenant_id, actor.user_id)
    return actor


async def require_admin(actor: Actor = Depends(require_actor)) -> Actor:
    """FastAPI dependency that requires a tenant administrator."""
    if not actor.is_tenant_admin:
        raise ForbiddenError("Admin access required")
    return actor
