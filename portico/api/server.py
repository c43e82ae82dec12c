"""Run the Portico API with uvicorn."""

import uvicorn

from portico.api.app import create_app
from portico.config import Settings
from portico.logging import configure_logging


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level, json_logs=settings.is_production)
    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        timeout_keep_alive=60,
        log_config=None,
    )


if __name__ == "__main__":
    main()
