from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

REQUIRED_FIELDS = ("name", "ingredients", "recipe")


class SortField(str, enum.Enum):
    """Stored fields the record store may order by."""

    CREATED_AT = "createdAt"
    NAME = "name"


class SortDirection(enum.Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: str
    name: str
    ingredients: str
    recipe: str
    created_at: Optional[datetime] = None
    image_ref: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.metadata)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "ingredients": self.ingredients,
                "recipe": self.recipe,
                "createdAt": self.created_at.isoformat() if self.created_at else None,
            }
        )
        if self.image_ref:
            data["imageRef"] = self.image_ref
        return data


@dataclass(frozen=True)
class StoredFile:
    """Result of storing a binary payload in the file store."""

    id: str
    name: str
    size: int
    content_type: Optional[str] = None
    read: List[str] = field(default_factory=list)
    write: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "contentType": self.content_type,
            "read": list(self.read),
            "write": list(self.write),
        }


__all__ = ["REQUIRED_FIELDS", "Recipe", "SortDirection", "SortField", "StoredFile"]
