"""Error body returned by the domain exception handlers."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body for mapped domain errors (4xx, and 500 for ledger drift)."""

    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(
        ...,
        description="Machine-readable error code, e.g. NOT_FOUND or CONCURRENT_MODIFICATION",
    )
