from __future__ import annotations

import os
import re
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Iterator, List, Mapping, Optional, Sequence

import requests
from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore, storage
from werkzeug.utils import secure_filename

from .config import Settings
from .errors import BackendUnavailable, InvalidInput, NotFound
from .models import Recipe, SortDirection, SortField, StoredFile

SIGNED_URL_EXPIRATION = timedelta(days=7)

_KNOWN_FIELDS = {"name", "ingredients", "recipe", "createdAt", "imageRef"}
_FILE_ID = re.compile(r"[0-9a-f]{32}")

_DIRECTIONS = {
    SortDirection.ASCENDING: firestore.Query.ASCENDING,
    SortDirection.DESCENDING: firestore.Query.DESCENDING,
}


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """Re-raise Google client failures as recipebook errors.

    Client faults other than bad input and missing objects propagate unchanged.
    """

    try:
        yield
    except gcloud_exceptions.NotFound as exc:
        raise NotFound(f"Failed to {action}: {exc.message}") from exc
    except gcloud_exceptions.FailedPrecondition:
        # Missing index or similar deployment fault, not caused by the request.
        raise
    except gcloud_exceptions.BadRequest as exc:
        raise InvalidInput(f"Failed to {action}: {exc.message}") from exc
    except ValueError as exc:
        # Raised client side for field data Firestore cannot encode.
        raise InvalidInput(f"Failed to {action}: {exc}") from exc
    except gcloud_exceptions.TooManyRequests as exc:
        raise BackendUnavailable(f"Failed to {action}: {exc}") from exc
    except gcloud_exceptions.ClientError:
        # Forbidden, Unauthenticated and friends point at misconfigured
        # credentials or IAM; they surface as internal errors.
        raise
    except (
        gcloud_exceptions.GoogleAPIError,
        auth_exceptions.GoogleAuthError,
        requests.exceptions.RequestException,
    ) as exc:
        raise BackendUnavailable(f"Failed to {action}: {exc}") from exc


class FirestoreRecordStore:
    """Record store backed by a Firestore collection."""

    def __init__(
        self,
        *,
        client: Optional[firestore.Client] = None,
        project: Optional[str] = None,
        collection_name: str = "recipes",
        timeout: float = 10.0,
    ) -> None:
        self._collection_name = collection_name
        self._timeout = timeout

        self._firestore_client = client or firestore.Client(project=project)
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirestoreRecordStore":
        return cls(
            project=settings.gcp_project,
            collection_name=settings.collection_name,
            timeout=settings.backend_timeout,
        )

    def create(self, fields: Mapping[str, Any]) -> Recipe:
        doc_ref = self._collection.document()

        with _translate_errors("create recipe"):
            doc_ref.set(dict(fields), retry=None, timeout=self._timeout)
            snapshot = doc_ref.get(retry=None, timeout=self._timeout)

        return self._doc_to_recipe(snapshot.id, snapshot.to_dict() or {})

    def list(
        self,
        sort_field: SortField = SortField.CREATED_AT,
        direction: SortDirection = SortDirection.DESCENDING,
    ) -> List[Recipe]:
        query = self._collection.order_by(sort_field.value, direction=_DIRECTIONS[direction])

        with _translate_errors("list recipes"):
            docs = query.stream(retry=None, timeout=self._timeout)
            return [self._doc_to_recipe(doc.id, doc.to_dict() or {}) for doc in docs]

    def update(self, record_id: str, fields: Mapping[str, Any]) -> Recipe:
        doc_ref = self._collection.document(record_id)

        with _translate_errors(f"update recipe '{record_id}'"):
            if fields:
                # Firestore rejects updates of missing documents with NotFound.
                doc_ref.update(dict(fields), retry=None, timeout=self._timeout)
            snapshot = doc_ref.get(retry=None, timeout=self._timeout)

        if not snapshot.exists:
            raise NotFound(f"Recipe '{record_id}' does not exist.")

        return self._doc_to_recipe(snapshot.id, snapshot.to_dict() or {})

    def delete(self, record_id: str) -> None:
        doc_ref = self._collection.document(record_id)

        with _translate_errors(f"delete recipe '{record_id}'"):
            snapshot = doc_ref.get(retry=None, timeout=self._timeout)

            if not snapshot.exists:
                raise NotFound(f"Recipe '{record_id}' does not exist.")

            doc_ref.delete(retry=None, timeout=self._timeout)

    def _doc_to_recipe(self, doc_id: str, data: dict) -> Recipe:
        created_at = data.get("createdAt")
        if not isinstance(created_at, datetime):
            created_at = None

        return Recipe(
            id=doc_id,
            name=data.get("name", ""),
            ingredients=data.get("ingredients", ""),
            recipe=data.get("recipe", ""),
            created_at=created_at,
            image_ref=data.get("imageRef"),
            metadata={key: value for key, value in data.items() if key not in _KNOWN_FIELDS},
        )


class CloudStorageFileStore:
    """File store backed by a Cloud Storage bucket.

    Objects are named ``<prefix>/<file id>`` so the id alone is enough to find
    the object again. The original filename and the opaque permission lists are
    kept as object metadata.
    """

    def __init__(
        self,
        *,
        bucket_name: str,
        client: Optional[storage.Client] = None,
        project: Optional[str] = None,
        prefix: str = "images",
        timeout: float = 10.0,
    ) -> None:
        self._bucket_name = bucket_name
        self._prefix = prefix.strip("/")
        self._timeout = timeout

        self._storage_client = client or storage.Client(project=project)
        self._bucket = self._storage_client.bucket(bucket_name)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudStorageFileStore":
        if not settings.bucket_name:
            raise RuntimeError("GCS_BUCKET must be set to store recipe images.")
        return cls(
            bucket_name=settings.bucket_name,
            project=settings.gcp_project,
            prefix=settings.image_prefix,
            timeout=settings.backend_timeout,
        )

    def store(
        self,
        stream: BinaryIO,
        read_permissions: Sequence[str],
        write_permissions: Sequence[str],
        *,
        filename: str,
        content_type: Optional[str] = None,
    ) -> StoredFile:
        safe = secure_filename(filename)
        if not safe:
            raise InvalidInput("Uploaded file has no usable filename.")

        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(0)
        if size == 0:
            raise InvalidInput("Uploaded file is empty.")

        file_id = uuid.uuid4().hex
        blob = self._bucket.blob(self._blob_name(file_id))
        blob.metadata = {
            "filename": safe,
            "read": ",".join(read_permissions),
            "write": ",".join(write_permissions),
        }

        with _translate_errors("store image"):
            blob.upload_from_file(
                stream,
                size=size,
                content_type=content_type,
                retry=None,
                timeout=self._timeout,
            )

        return StoredFile(
            id=file_id,
            name=safe,
            size=size,
            content_type=content_type,
            read=list(read_permissions),
            write=list(write_permissions),
        )

    def url(self, file_id: str) -> str:
        blob = self._bucket.blob(self._blob_name(file_id))

        with _translate_errors(f"find image '{file_id}'"):
            exists = blob.exists(retry=None, timeout=self._timeout)
        if not exists:
            raise NotFound(f"Image '{file_id}' does not exist.")

        return self._get_image_url(blob)

    def delete(self, file_id: str) -> None:
        blob = self._bucket.blob(self._blob_name(file_id))

        with _translate_errors(f"delete image '{file_id}'"):
            blob.delete(retry=None, timeout=self._timeout)

    def _blob_name(self, file_id: str) -> str:
        if not _FILE_ID.fullmatch(file_id):
            raise NotFound(f"Image '{file_id}' does not exist.")
        return f"{self._prefix}/{file_id}"

    def _get_image_url(self, blob: storage.Blob) -> str:
        try:
            return blob.generate_signed_url(
                version="v4", method="GET", expiration=SIGNED_URL_EXPIRATION
            )
        except (ValueError, TypeError, AttributeError, auth_exceptions.GoogleAuthError):
            # Signing needs credentials with a private key; without them the
            # bucket must already grant public read.
            return blob.public_url


__all__ = ["CloudStorageFileStore", "FirestoreRecordStore", "SIGNED_URL_EXPIRATION"]
