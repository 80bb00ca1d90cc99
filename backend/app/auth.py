"""Request identity for the data and execution routes."""

import os
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException


@dataclass(frozen=True)
class User:
    sub: str


def get_authorized_user(x_user_id: Annotated[Optional[str], Header()] = None) -> User:
    """Identity from the X-User-Id header, falling back to DEFAULT_USER_ID."""
    user_id = (x_user_id or "").strip() or os.environ.get("DEFAULT_USER_ID", "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return User(sub=user_id)


AuthorizedUser = Annotated[User, Depends(get_authorized_user)]
