import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path


DEFAULT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(level: str = 'INFO', log_file: str | None = None, fmt: str | None = None):
    root = logging.getLogger()
    root.setLevel(logging.WARNING)  # keep third-party loggers quiet
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)

    # Avoid stacking handlers when the app factory runs more than once
    if not any(getattr(h, '_chatroom', False) for h in root.handlers):
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        stream_handler._chatroom = True
        root.addHandler(stream_handler)

        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=10 * 1024 * 1024, backupCount=5
            )
            file_handler.setFormatter(formatter)
            file_handler._chatroom = True
            root.addHandler(file_handler)

    logging.getLogger('chatroom').setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger('chatroom').info('Logging is set up.')
    return root
