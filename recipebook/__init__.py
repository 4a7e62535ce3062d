import json
import logging
from typing import Any, Optional

from flask import Flask, jsonify, redirect, request
from flask.typing import ResponseReturnValue
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from .config import Settings
from .errors import InvalidInput, RecipeError
from .gcp_storage import CloudStorageFileStore, FirestoreRecordStore
from .models import REQUIRED_FIELDS, Recipe
from .service import RecipeService
from .storage import FileStore, RecordStore
from .uploads import save_upload

API_PREFIX = "/api/v1"

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    record_store: Optional[RecordStore] = None,
    file_store: Optional[FileStore] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    settings:
        Runtime configuration. Read from the environment when ``None``.
    record_store:
        Optional record store. When ``None`` the application will use
        :class:`FirestoreRecordStore` built from ``settings``.
    file_store:
        Optional file store. When ``None`` a :class:`CloudStorageFileStore` is
        built if ``settings.bucket_name`` is set; otherwise image uploads are
        rejected as a backend failure.
    """

    if settings is None:
        settings = Settings.from_env()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes
    app.config["UPLOAD_DIR"] = settings.upload_dir
    origins = "*" if "*" in settings.cors_origins else list(settings.cors_origins)
    CORS(app, resources={r"/api/*": {"origins": origins}})

    if record_store is None:
        record_store = FirestoreRecordStore.from_settings(settings)
    if file_store is None and settings.bucket_name:
        file_store = CloudStorageFileStore.from_settings(settings)

    app.config["RECIPE_SERVICE"] = RecipeService(
        record_store,
        file_store,
        read_permissions=settings.file_read_permissions,
        write_permissions=settings.file_write_permissions,
    )

    @app.get(f"{API_PREFIX}/getRecipes")
    def get_recipes() -> ResponseReturnValue:
        service: RecipeService = app.config["RECIPE_SERVICE"]
        return jsonify([recipe.to_dict() for recipe in service.list_recipes()]), 200

    @app.post(f"{API_PREFIX}/createRecipe")
    def create_recipe() -> ResponseReturnValue:
        service: RecipeService = app.config["RECIPE_SERVICE"]

        details = _read_details()
        image = request.files.get("image")
        upload = None

        if image and image.filename:
            upload = save_upload(image, app.config["UPLOAD_DIR"])

        created, stored = service.create(details, upload)
        body = {
            "createdData": created.to_dict(),
            "createdImage": stored.to_dict() if stored else None,
        }
        return jsonify(body), 201

    @app.delete(f"{API_PREFIX}/deleteRecipe/<recipe_id>")
    def delete_recipe(recipe_id: str) -> ResponseReturnValue:
        service: RecipeService = app.config["RECIPE_SERVICE"]
        return jsonify(service.delete(recipe_id)), 200

    @app.patch(f"{API_PREFIX}/updateRecipe/<recipe_id>")
    def update_recipe(recipe_id: str) -> ResponseReturnValue:
        service: RecipeService = app.config["RECIPE_SERVICE"]

        if request.get_data(cache=True):
            payload = request.get_json(force=True, silent=True)
            if payload is None:
                raise InvalidInput("Malformed JSON body.")
        else:
            payload = {}

        updated: Recipe = service.update(recipe_id, payload)
        return jsonify(updated.to_dict()), 200

    @app.get(f"{API_PREFIX}/getImage/<file_id>")
    def get_image(file_id: str) -> ResponseReturnValue:
        service: RecipeService = app.config["RECIPE_SERVICE"]
        return redirect(service.image_url(file_id), code=302)

    @app.errorhandler(RecipeError)
    def handle_recipe_error(exc: RecipeError) -> ResponseReturnValue:
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.path, exc.message)
        return jsonify(exc.as_dict()), exc.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(exc: RequestEntityTooLarge) -> ResponseReturnValue:
        limit = app.config["MAX_CONTENT_LENGTH"]
        return jsonify({"error": f"Upload exceeds the {limit} byte limit."}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException) -> ResponseReturnValue:
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception) -> ResponseReturnValue:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    return app


def _read_details() -> Any:
    """Return the recipe details of a create request.

    Multipart requests carry them as a JSON string in the ``details`` field;
    plain form posts and JSON bodies are accepted as well.
    """

    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            raise InvalidInput("Malformed JSON body.")
        return payload

    raw = request.form.get("details")
    if raw is None:
        return {key: request.form[key] for key in REQUIRED_FIELDS if key in request.form}

    try:
        return json.loads(raw)
    except ValueError:
        raise InvalidInput("Malformed JSON in 'details' field.") from None


__all__ = ["API_PREFIX", "create_app", "Recipe"]
