"""Shared base for models parsed from API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model for server payloads.

    The server speaks camelCase JSON; fields are snake_case in Python and
    accept either spelling on input. Unknown fields are ignored so newer
    servers do not break older clients.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> dict:
        """Serialize back to the server's camelCase shape."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
