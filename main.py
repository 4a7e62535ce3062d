"""WSGI entrypoint for the recipebook API.

Containerized deployments serve the ``app`` object below with Gunicorn. Local
development can use ``flask --app main run`` or ``python main.py``.
"""

import logging

from recipebook import create_app
from recipebook.config import Settings


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings.from_env()
configure_logging(settings.log_level)

app = create_app(settings)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=settings.port)


__all__ = ["app", "configure_logging"]
