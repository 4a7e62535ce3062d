"""
Recipe orchestration.

The service is the only component that talks to both the record store and the
file store. It validates request payloads, stores an uploaded image before the
record that references it, stamps ``createdAt`` and turns results into domain
objects for the web layer.

Create is not transactional. When the record store fails after an image was
stored, the image is deleted again on a best-effort basis and the original
error is re-raised.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import BackendUnavailable, InvalidInput
from .models import REQUIRED_FIELDS, Recipe, SortDirection, SortField, StoredFile
from .storage import FileStore, RecordStore
from .uploads import UploadedImage, open_upload

logger = logging.getLogger(__name__)


class RecipeService:
    def __init__(
        self,
        record_store: RecordStore,
        file_store: Optional[FileStore] = None,
        *,
        read_permissions: Sequence[str] = ("*",),
        write_permissions: Sequence[str] = ("*",),
    ) -> None:
        self._records = record_store
        self._files = file_store
        self._read_permissions = list(read_permissions)
        self._write_permissions = list(write_permissions)

    def create(
        self, payload: Any, image: Optional[UploadedImage] = None
    ) -> Tuple[Recipe, Optional[StoredFile]]:
        """Store an optional image, then the recipe record referencing it.

        Parameters
        ----------
        payload:
            Mapping with ``name``, ``ingredients`` and ``recipe``.
        image:
            Upload already written to local disk. It is removed from disk
            whatever the outcome.

        Returns
        -------
        The created recipe and the stored file (``None`` without image).
        :class:`InvalidInput` is raised for a missing or blank field; adapter
        errors pass through unchanged.
        """
        stored: Optional[StoredFile] = None

        if image is None:
            fields = _new_recipe_fields(payload)
        else:
            with open_upload(image) as stream:
                fields = _new_recipe_fields(payload)
                stored = self._store_image(stream, image)
            fields["imageRef"] = stored.id

        fields["createdAt"] = datetime.now(timezone.utc)

        try:
            created = self._records.create(fields)
        except Exception:
            if stored is not None:
                self._discard_orphan(stored.id)
            raise

        logger.info("Created recipe %s (image=%s)", created.id, stored.id if stored else None)
        return created, stored

    def list_recipes(self) -> List[Recipe]:
        return self._records.list(SortField.CREATED_AT, SortDirection.DESCENDING)

    def update(self, recipe_id: str, payload: Any) -> Recipe:
        """Replace any subset of the text fields of an existing recipe."""
        if not isinstance(payload, Mapping):
            raise InvalidInput("Update body must be a JSON object.")

        rejected = sorted(key for key in payload if key not in REQUIRED_FIELDS)
        if rejected:
            raise InvalidInput(f"Fields cannot be updated: {', '.join(map(str, rejected))}.")

        fields = {key: _text_field(key, value) for key, value in payload.items()}
        return self._records.update(recipe_id, fields)

    def delete(self, recipe_id: str) -> Dict[str, Any]:
        self._records.delete(recipe_id)
        logger.info("Deleted recipe %s", recipe_id)
        return {"id": recipe_id, "deleted": True}

    def image_url(self, file_id: str) -> str:
        return self._require_files().url(file_id)

    def _store_image(self, stream, image: UploadedImage) -> StoredFile:
        return self._require_files().store(
            stream,
            self._read_permissions,
            self._write_permissions,
            filename=image.filename,
            content_type=image.content_type,
        )

    def _require_files(self) -> FileStore:
        if self._files is None:
            raise BackendUnavailable("Image storage is not configured.")
        return self._files

    def _discard_orphan(self, file_id: str) -> None:
        try:
            self._require_files().delete(file_id)
        except Exception:
            logger.exception("Could not remove image %s orphaned by a failed create", file_id)
        else:
            logger.warning("Removed image %s orphaned by a failed create", file_id)


def _new_recipe_fields(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, Mapping):
        raise InvalidInput("Recipe details must be a JSON object.")
    return {key: _text_field(key, payload.get(key)) for key in REQUIRED_FIELDS}


def _text_field(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"Please provide a recipe {key}.")
    return value


__all__ = ["RecipeService"]
