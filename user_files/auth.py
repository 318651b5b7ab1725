"""Requester identity as supplied by upstream auth infrastructure."""
from fastapi import Request

from .errors import UnauthenticatedError

USER_HEADER = "X-User-Id"


def get_current_user_id(request: Request) -> str:
    # An auth middleware may have already put the id on request.state
    user_id = getattr(request.state, "user_id", None) or request.headers.get(USER_HEADER)
    if not user_id:
        raise UnauthenticatedError()
    user_id = str(user_id)
    # the id names the user's upload directory
    if "/" in user_id or "\\" in user_id or user_id in (".", ".."):
        raise UnauthenticatedError("Invalid user identifier")
    return user_id
