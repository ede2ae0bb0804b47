"""Caller identity for API requests.

Authentication happens upstream; the gateway forwards the verified user id
and role as ``X-User-Id`` and ``X-User-Role`` headers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from fastapi import Depends, Header, HTTPException

from storefront.utils.logging import add_context


class Role(Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


async def current_caller(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Caller:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        role = Role((x_user_role or Role.CUSTOMER.value).strip().upper())
    except ValueError as exc:
        raise HTTPException(status_code=403, detail=f"Unknown role: {x_user_role}") from exc
    add_context(user_id=x_user_id)
    return Caller(user_id=x_user_id, role=role)


def require_admin(caller: Annotated[Caller, Depends(current_caller)]) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return caller


CurrentCaller = Annotated[Caller, Depends(current_caller)]
AdminCaller = Annotated[Caller, Depends(require_admin)]
