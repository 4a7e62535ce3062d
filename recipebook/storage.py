from __future__ import annotations

from typing import Any, BinaryIO, List, Mapping, Optional, Protocol, Sequence

from .models import Recipe, SortDirection, SortField, StoredFile


class RecordStore(Protocol):
    """Document persistence used by the recipe service.

    Implementations own the collection identifier and the stored field shape.
    Errors are raised as :class:`recipebook.errors.RecipeError` subclasses.
    """

    def create(self, fields: Mapping[str, Any]) -> Recipe:
        """Persist a new document and return it with its assigned id."""

    def list(
        self,
        sort_field: SortField = SortField.CREATED_AT,
        direction: SortDirection = SortDirection.DESCENDING,
    ) -> List[Recipe]:
        """Return every stored recipe ordered by the backend."""

    def update(self, record_id: str, fields: Mapping[str, Any]) -> Recipe:
        """Replace the named fields and return the new representation."""

    def delete(self, record_id: str) -> None:
        """Remove a document or raise :class:`NotFound`."""


class FileStore(Protocol):
    """Binary object storage for recipe images."""

    def store(
        self,
        stream: BinaryIO,
        read_permissions: Sequence[str],
        write_permissions: Sequence[str],
        *,
        filename: str,
        content_type: Optional[str] = None,
    ) -> StoredFile:
        """Upload the stream and return the stored file description."""

    def url(self, file_id: str) -> str:
        """Return a URL the stored file can be fetched from."""

    def delete(self, file_id: str) -> None:
        """Remove a stored file or raise :class:`NotFound`."""


__all__ = ["FileStore", "RecordStore"]
