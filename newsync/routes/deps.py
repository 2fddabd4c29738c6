"""
Shared route dependencies.
"""

from typing import Annotated

from fastapi import Depends, Header


def get_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> str | None:
    """
    Caller-supplied user id.

    Authentication happens upstream of this service; when the header is
    missing the gateway falls back to its own identity resolution.
    """
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


UserIdDep = Annotated[str | None, Depends(get_user_id)]
