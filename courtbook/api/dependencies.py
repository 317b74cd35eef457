"""Shared route dependencies."""
from fastapi import Header, HTTPException


async def get_current_user_id(x_user_id: str = Header(default=None)) -> str:
    """
    Identify the caller.

    Authentication happens upstream; the gateway forwards the authenticated
    user id in the X-User-Id header and the engine only records it.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()
