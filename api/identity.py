"""Caller identity, resolved upstream and passed in a request header."""

from fastapi import HTTPException, Request

from config import config


async def get_caller(request: Request) -> str:
    """
    Return the authenticated caller's account id.

    The authenticating proxy in front of this service sets the identity
    header; a request without it is refused before any operation runs.
    """
    account = request.headers.get(config.identity_header, "").strip()
    if not account:
        raise HTTPException(
            status_code=401,
            detail=f"Missing authenticated caller identity ({config.identity_header})",
        )
    return account
