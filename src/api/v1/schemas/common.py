"""Common Pydantic schemas shared across the API."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes and accepts camelCase keys; snake_case is accepted too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standardized error response."""

    success: bool = False
    error: str
    error_code: str
    details: Any | None = None


class SuccessResponse(CamelModel):
    """Bare success acknowledgement."""

    success: bool = True
