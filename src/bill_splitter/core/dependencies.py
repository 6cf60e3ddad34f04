from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from .config import settings
from ..services.splitwise_client import SplitwiseClient


def get_access_token(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """Splitwise token from the auth cookie, or a bearer Authorization header."""
    token = request.cookies.get(settings.auth_cookie_name)
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return token


def get_splitwise_client(access_token: str = Depends(get_access_token)) -> SplitwiseClient:
    return SplitwiseClient(access_token)


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id
