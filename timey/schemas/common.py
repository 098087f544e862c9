"""
Error envelope shared by every endpoint, for the OpenAPI docs.
"""
from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """`{code, message, details}` body returned for all 4xx/5xx responses."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


def error_response(description: str) -> dict[str, Any]:
    """OpenAPI `responses=` entry documenting an error status."""
    return {"model": ErrorResponse, "description": description}
