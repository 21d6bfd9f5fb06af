"""
Stocklet Common Schemas
Shared Pydantic models for common API structures
"""
from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain message response, also used for every error body"""
    message: str = Field(..., description="Human-readable message")


def total_pages(total_items: int, limit: int) -> int:
    """Number of pages needed for ``total_items`` at ``limit`` per page"""
    if limit <= 0:
        return 0
    return (total_items + limit - 1) // limit
