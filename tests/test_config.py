from recipebook.config import DEFAULT_MAX_UPLOAD_BYTES, Settings


def test_defaults_without_environment(monkeypatch):
    for name in ("GCS_BUCKET", "RECIPES_COLLECTION", "MAX_UPLOAD_BYTES", "CORS_ORIGINS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.bucket_name is None
    assert settings.collection_name == "recipes"
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 3 * 1024 * 1024
    assert settings.cors_origins == ("*",)


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("GCP_PROJECT", "kitchen")
    monkeypatch.setenv("GCS_BUCKET", "kitchen-images")
    monkeypatch.setenv("BACKEND_TIMEOUT", "2.5")
    monkeypatch.setenv("FILE_READ_PERMISSIONS", "role:all, user:42 ,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.gcp_project == "kitchen"
    assert settings.bucket_name == "kitchen-images"
    assert settings.backend_timeout == 2.5
    assert settings.file_read_permissions == ("role:all", "user:42")
    assert settings.log_level == "DEBUG"
