import logging
from typing import Optional

import click

from .config import Settings
from .store import HistoryStore
from .webapp import create_app

logger = logging.getLogger(__name__)


@click.command()
@click.option("--host", default=None, help="Host to bind to (default: $HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port to bind to (default: $PORT or 5000)")
@click.option("--database-url", default=None, help="SQLAlchemy database URL (default: $DATABASE_URL)")
@click.option("--debug", is_flag=True, default=False, help="Run Flask in debug mode")
def main(host: Optional[str], port: Optional[int], database_url: Optional[str], debug: bool) -> None:
    """Run the calculation history server."""
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    store = HistoryStore(database_url or settings.database_url)
    app = create_app(store, cors_origins=settings.cors_origins)
    host = host or settings.host
    port = port or settings.port

    logger.info("Server running on http://%s:%d", host, port)
    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False)
    finally:
        store.close()


if __name__ == "__main__":  # pragma: no cover
    main()
