"""Run the settlement API under uvicorn."""

import logging

import uvicorn

from settlement_api.app import create_app
from settlement_api.config import Config

logger = logging.getLogger(__name__)


def main():
    config = Config.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Environment: {config.environment}, listening on {config.host}:{config.port}")

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
