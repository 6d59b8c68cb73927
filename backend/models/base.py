"""
Base schema and common utilities
"""

from typing import Any

from pydantic import BaseModel


class BaseSchema(BaseModel):
    """Base Pydantic schema"""

    class Config:
        from_attributes = True
        populate_by_name = True

    def to_dict(self) -> dict[str, Any]:
        """Dump using wire-format (alias) keys."""
        return self.model_dump(by_alias=True)
