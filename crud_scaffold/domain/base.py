"""
Base DTO Models

Defines the default create/update validation schemas and the list response envelope.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Columns owned by the store; clients must not send them
READ_ONLY_FIELDS = ("id", "created_at", "updated_at")


class BaseDTO(BaseModel):
    """
    Default Create/Update Schema

    Accepts any field except the store-managed ones.
    """

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def reject_read_only_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            sent = [name for name in READ_ONLY_FIELDS if data.get(name) not in (None, "")]
            if sent:
                raise ValueError(f"Fields managed by the server must be empty: {', '.join(sent)}")
            return {key: value for key, value in data.items() if key not in READ_ONLY_FIELDS}
        return data


class FindResponse(BaseModel):
    """Paginated List Response"""

    # Records of the current page
    data: list[dict[str, Any]] = Field(default_factory=list, description="Records")
    # Total matching records, ignoring pagination
    total: int = Field(0, description="Total count")
    # Query for the following page, null on the last page
    next_query: Optional[dict[str, Any]] = Field(
        None, alias="nextQuery", description="Next page query"
    )

    model_config = ConfigDict(populate_by_name=True)
