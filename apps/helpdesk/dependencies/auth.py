from collections.abc import Callable, Mapping
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from apps.helpdesk.core.config import get_settings
from apps.helpdesk.tickets.models import CallerClaim, Role

bearer_scheme = HTTPBearer(auto_error=False)


def parse_claim(value: str) -> CallerClaim:
    """Parse a ``"ROLE:subject_id"`` string into a validated claim."""

    role, sep, subject = value.partition(":")
    if not sep:
        raise ValueError(f"Malformed claim {value!r}")
    return CallerClaim(subject_id=int(subject), role=Role(role.strip().upper()))


def resolve_claim_from_token(token: str | None, tokens: Mapping[str, str]) -> CallerClaim | None:
    """Return the claim bound to ``token``; ``None`` when no token was sent."""

    if token is None:
        return None

    raw = tokens.get(token)
    if raw is None:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")
    try:
        return parse_claim(raw)
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=401, detail="Invalid authentication credentials") from exc


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
) -> CallerClaim:
    """Static token authentication.

    Tokens are configured through ``AUTH_TOKENS``; a real deployment swaps this
    dependency for one that verifies signed tokens. The claim is validated
    once here and handed to the engine as an immutable value.
    """

    cached = getattr(request.state, "caller", None)
    if isinstance(cached, CallerClaim):
        return cached

    token = credentials.credentials if credentials is not None else None
    claim = resolve_claim_from_token(token, get_settings().auth_tokens)
    if claim is None:
        raise HTTPException(status_code=401, detail="Token not provided")
    request.state.caller = claim
    return claim


def role_required(*roles: Role) -> Callable[[CallerClaim], CallerClaim]:
    """Dependency factory ensuring the caller holds one of ``roles``."""

    allowed = frozenset(roles)

    async def dependency(caller: Annotated[CallerClaim, Depends(get_current_caller)]) -> CallerClaim:
        if caller.role not in allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Role {caller.role.value} is not allowed to perform this action",
            )
        return caller

    return dependency


CurrentCaller = Annotated[CallerClaim, Depends(get_current_caller)]
