"""Caller identity from the Static Web Apps client-principal header."""
from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from fastapi import Request

from workback.config import runtime_config

logger = logging.getLogger(__name__)

PRINCIPAL_HEADER = "x-ms-client-principal"
OBJECT_ID_CLAIM = "http://schemas.microsoft.com/identity/claims/objectidentifier"


@dataclass
class UserContext:
    authenticated: bool = False
    name: str = ""
    email: str = ""
    oid: str = ""
    roles: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "authenticated": self.authenticated,
            "name": self.name,
            "email": self.email,
            "oid": self.oid,
            "roles": list(self.roles),
        }


def decode_client_principal(header_value: str) -> Optional[Dict[str, Any]]:
    try:
        raw = base64.b64decode(header_value)
        decoded = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable client principal: %s", exc)
        return None
    return decoded if isinstance(decoded, dict) else None


def _claim(claims: List[Dict[str, Any]], typ: str) -> Optional[str]:
    for claim in claims:
        if isinstance(claim, dict) and claim.get("typ") == typ:
            return claim.get("val")
    return None


def user_context_from_principal(principal: Dict[str, Any]) -> UserContext:
    claims = principal.get("claims")
    claims = claims if isinstance(claims, list) else []
    details = principal.get("userDetails")
    roles = principal.get("userRoles")
    return UserContext(
        authenticated=True,
        name=details or _claim(claims, "name") or "",
        email=details or _claim(claims, "preferred_username") or _claim(claims, "email") or "",
        oid=_claim(claims, OBJECT_ID_CLAIM) or _claim(claims, "oid") or "",
        roles=list(roles) if isinstance(roles, list) else [],
    )


def user_context_from_headers(
    headers: Mapping[str, str],
    query: Optional[Mapping[str, str]] = None,
) -> UserContext:
    normalized = {key.lower(): value for key, value in headers.items()}
    principal_header = normalized.get(PRINCIPAL_HEADER)
    if principal_header:
        principal = decode_client_principal(principal_header)
        return user_context_from_principal(principal) if principal is not None else UserContext()

    # local development: ?as=email impersonates a user
    impersonate = (query or {}).get("as")
    if impersonate and runtime_config.is_dev_env():
        return UserContext(
            authenticated=True,
            name=impersonate,
            email=impersonate,
            oid=impersonate,
            roles=["authenticated"],
        )
    return UserContext()


def get_user_context(request: Request) -> UserContext:
    return user_context_from_headers(dict(request.headers), dict(request.query_params))
