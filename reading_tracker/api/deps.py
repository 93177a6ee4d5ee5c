"""
Shared API dependencies
"""
from fastapi import Header, HTTPException
from typing import Optional


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    User id supplied by the upstream identity provider
    
    The gateway authenticates the caller and forwards the id verbatim.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()
