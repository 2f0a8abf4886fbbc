"""
Request body helpers.
"""

from typing import Any, Iterable

from pydantic import BaseModel


def update_payload(body: BaseModel, nullable: Iterable[str] = ()) -> dict[str, Any]:
    """
    Fields the client actually sent. A null is kept only for columns that
    accept it; for the rest it means "leave unchanged".
    """
    allowed = set(nullable)
    return {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key in allowed
    }
