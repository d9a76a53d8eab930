# auth.py
# Session credential check applied to every API route.

from typing import Optional

from fastapi import Header, HTTPException

from . import config


def require_session(x_session_token: Optional[str] = Header(None)) -> str:
    if not x_session_token or x_session_token not in config.API_TOKENS:
        raise HTTPException(status_code=401, detail="Missing or invalid session credential")
    return x_session_token
