"""
FastAPI Dependencies

Common dependencies for caller identity.
"""

from typing import Optional

from fastapi import Header, HTTPException, status


async def get_current_owner_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """
    Resolve the calling learner from the X-User-Id header.

    Authentication happens upstream (gateway/proxy); this service only
    trusts the identity it is handed and scopes every query by it.

    Returns:
        str: The learner's owner id

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    owner_id = (x_user_id or "").strip()

    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )

    if len(owner_id) > 64:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id header",
        )

    return owner_id
