# src/pricewatch/main.py
import os

import structlog
import uvicorn
from dotenv import load_dotenv

from pricewatch.app import create_app
from pricewatch.config import settings_from_env
from pricewatch.utils.logs import configure_logging

log = structlog.get_logger()


def main():
    load_dotenv()
    settings = settings_from_env()
    configure_logging(settings.log_level, json=os.getenv("LOG_JSON", "0").lower() in ("1", "true", "yes"))

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    log.info(
        "starting",
        host=host,
        port=port,
        symbols=[s.symbol for s in settings.stocks if s.enabled],
        mock=settings.use_mock_data,
    )

    app = create_app(settings)
    # uvicorn's own logging stays on stdlib logging
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
