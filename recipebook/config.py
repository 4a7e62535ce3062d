from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_MAX_UPLOAD_BYTES = 3 * 1024 * 1024


def _split(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Runtime configuration injected into the storage adapters and the web layer."""

    gcp_project: Optional[str] = None
    collection_name: str = "recipes"
    bucket_name: Optional[str] = None
    image_prefix: str = "images"
    upload_dir: str = "images"
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    backend_timeout: float = 10.0
    file_read_permissions: Tuple[str, ...] = ("*",)
    file_write_permissions: Tuple[str, ...] = ("*",)
    cors_origins: Tuple[str, ...] = ("*",)
    port: int = 5000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and a local ``.env``)."""

        load_dotenv()
        env = os.environ
        return cls(
            gcp_project=env.get("GCP_PROJECT") or None,
            collection_name=env.get("RECIPES_COLLECTION", "recipes"),
            bucket_name=env.get("GCS_BUCKET") or None,
            image_prefix=env.get("IMAGE_PREFIX", "images"),
            upload_dir=env.get("UPLOAD_DIR", "images"),
            max_upload_bytes=int(env.get("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)),
            backend_timeout=float(env.get("BACKEND_TIMEOUT", "10")),
            file_read_permissions=_split(env.get("FILE_READ_PERMISSIONS", "*")),
            file_write_permissions=_split(env.get("FILE_WRITE_PERMISSIONS", "*")),
            cors_origins=_split(env.get("CORS_ORIGINS", "*")),
            port=int(env.get("PORT", "5000")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


__all__ = ["DEFAULT_MAX_UPLOAD_BYTES", "Settings"]
