"""
Caller identity for the API.

Sessions are handled by the upstream auth layer, which forwards the
authenticated user id in ``X-User-Id``. Admin endpoints additionally require
the shared ``X-Admin-Key``.
"""
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException

from .state import PortalState, get_state


async def get_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Authenticated user id, or None for anonymous catalog reads."""
    if x_user_id is None:
        return None
    x_user_id = x_user_id.strip()
    return x_user_id or None


async def require_user(user_id: Optional[str] = Depends(get_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


async def require_admin(
    x_admin_key: Optional[str] = Header(None),
    state: PortalState = Depends(get_state),
) -> None:
    expected = state.settings.admin_api_key
    if not expected or not x_admin_key or not secrets.compare_digest(x_admin_key.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
