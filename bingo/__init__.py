"""Flask application package."""

from __future__ import annotations

from flask import Flask

try:
    from dotenv import load_dotenv
except Exception:  # pragma: no cover
    load_dotenv = None  # type: ignore[assignment]


def create_app(config: type | None = None) -> Flask:
    """Application factory.

    Args:
        config: Optional config class; resolved from APP_ENV when omitted.

    Returns:
        Configured Flask application.
    """
    if load_dotenv is not None:
        load_dotenv()

    from bingo.config import get_config
    from bingo.db import init_db
    from bingo.error_handlers import register_error_handlers
    from bingo.logging_config import configure_logging
    from bingo.routes.health import health_bp
    from bingo.routes.messages import messages_bp
    from bingo.state.store import InMemoryStateStore

    app = Flask(__name__)
    app.config.from_object(config or get_config())

    configure_logging(app)
    init_db(app)
    register_error_handlers(app)

    # Process-local: run a single worker process per bot.
    app.extensions["state_store"] = InMemoryStateStore()

    app.register_blueprint(health_bp)
    app.register_blueprint(messages_bp, url_prefix="/api")

    return app
