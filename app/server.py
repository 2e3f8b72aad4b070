"""HTTP server entry point.

Usage:
    python -m app.server
"""

import sys

import uvicorn

from app.api import create_app
from app.core.configs import app_config
from app.core.deps import logger


def main() -> None:
    app = create_app()
    logger.info('Server starting', host=app_config.HOST, port=app_config.PORT)
    # log_config=None keeps the structlog handlers installed by app.core.services.log
    uvicorn.run(app, host=app_config.HOST, port=app_config.PORT, log_config=None)


if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
