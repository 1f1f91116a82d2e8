"""
Shared pydantic base for persisted and API-shaped records.

Stored report documents and the recommendations response use camelCase
keys (studentId, extractedText, parentActions); Python code uses the
snake_case attribute names. Both spellings are accepted on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """BaseModel that reads either spelling and dumps camelCase on request."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict:
        """JSON-safe dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
