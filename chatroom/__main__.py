"""
Start the chat backend.

Usage:
    python -m chatroom

Or with uvicorn directly:
    uvicorn chatroom.app:create_app --factory --host 0.0.0.0 --port 5000
"""

import logging

import uvicorn

from chatroom.logging_config import setup_logging
from chatroom.settings import Settings

logger = logging.getLogger('chatroom')


def main():
    settings = Settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_PATH, settings.LOG_FORMAT)
    logger.info('Server running on http://%s:%s', settings.HOST, settings.PORT)
    uvicorn.run(
        'chatroom.app:create_app',
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == '__main__':
    main()
