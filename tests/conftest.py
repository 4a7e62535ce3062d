from __future__ import annotations

import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pytest

from recipebook import create_app
from recipebook.config import Settings
from recipebook.errors import NotFound, RecipeError
from recipebook.models import Recipe, SortDirection, SortField, StoredFile


class InMemoryRecordStore:
    """Simple record store used for tests.

    Setting ``fail_next`` makes the next call raise that error.
    """

    def __init__(self) -> None:
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.fail_next: Optional[RecipeError] = None
        self.list_calls: List[tuple] = []

    def create(self, fields: Mapping[str, Any]) -> Recipe:
        self._maybe_fail()
        record_id = uuid.uuid4().hex
        self.docs[record_id] = dict(fields)
        return self._to_recipe(record_id)

    def list(
        self,
        sort_field: SortField = SortField.CREATED_AT,
        direction: SortDirection = SortDirection.DESCENDING,
    ) -> List[Recipe]:
        self._maybe_fail()
        self.list_calls.append((sort_field, direction))
        ordered = sorted(
            self.docs,
            key=lambda record_id: self.docs[record_id][sort_field.value],
            reverse=direction is SortDirection.DESCENDING,
        )
        return [self._to_recipe(record_id) for record_id in ordered]

    def update(self, record_id: str, fields: Mapping[str, Any]) -> Recipe:
        self._maybe_fail()
        if record_id not in self.docs:
            raise NotFound(f"Recipe '{record_id}' does not exist.")
        self.docs[record_id].update(fields)
        return self._to_recipe(record_id)

    def delete(self, record_id: str) -> None:
        self._maybe_fail()
        if self.docs.pop(record_id, None) is None:
            raise NotFound(f"Recipe '{record_id}' does not exist.")

    def _maybe_fail(self) -> None:
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    def _to_recipe(self, record_id: str) -> Recipe:
        data = self.docs[record_id]
        return Recipe(
            id=record_id,
            name=data["name"],
            ingredients=data["ingredients"],
            recipe=data["recipe"],
            created_at=data.get("createdAt"),
            image_ref=data.get("imageRef"),
        )


class InMemoryFileStore:
    def __init__(self) -> None:
        self.files: Dict[str, bytes] = {}
        self.permissions: Dict[str, tuple] = {}
        self.fail_next: Optional[RecipeError] = None
        self.fail_delete: Optional[RecipeError] = None

    def store(
        self,
        stream,
        read_permissions: Sequence[str],
        write_permissions: Sequence[str],
        *,
        filename: str,
        content_type: Optional[str] = None,
    ) -> StoredFile:
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error
        content = stream.read()
        file_id = uuid.uuid4().hex
        self.files[file_id] = content
        self.permissions[file_id] = (list(read_permissions), list(write_permissions))
        return StoredFile(
            id=file_id,
            name=filename,
            size=len(content),
            content_type=content_type,
            read=list(read_permissions),
            write=list(write_permissions),
        )

    def url(self, file_id: str) -> str:
        if file_id not in self.files:
            raise NotFound(f"Image '{file_id}' does not exist.")
        return f"https://files.test/{file_id}"

    def delete(self, file_id: str) -> None:
        if self.fail_delete is not None:
            raise self.fail_delete
        if self.files.pop(file_id, None) is None:
            raise NotFound(f"Image '{file_id}' does not exist.")


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    return Settings(upload_dir=str(upload_dir), max_upload_bytes=64 * 1024)


@pytest.fixture
def records():
    return InMemoryRecordStore()


@pytest.fixture
def files():
    return InMemoryFileStore()


@pytest.fixture
def app(settings, records, files):
    app = create_app(settings, record_store=records, file_store=files)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()
