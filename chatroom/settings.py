"""Application configuration settings"""

import os
from dotenv import load_dotenv

from chatroom.logging_config import DEFAULT_FORMAT

load_dotenv()


class Settings:
    def __init__(self, **overrides):
        # MongoDB
        self.DATABASE_URL = os.getenv(
            'DATABASE_URL', 'mongodb://localhost:27017/chatroom'
        )
        self.DATABASE_NAME = os.getenv('DATABASE_NAME', 'chatroom')
        self.MONGO_TIMEOUT_MS = int(os.getenv('MONGO_TIMEOUT_MS', '5000'))

        # Presence: the sweep period and the inactivity window are independent
        self.SWEEP_INTERVAL_SECONDS = float(os.getenv('SWEEP_INTERVAL_SECONDS', '15'))
        self.INACTIVITY_TIMEOUT_SECONDS = float(
            os.getenv('INACTIVITY_TIMEOUT_SECONDS', '10')
        )

        # HTTP
        self.CORS_ORIGINS = [
            origin.strip()
            for origin in os.getenv('CORS_ORIGINS', '*').split(',')
            if origin.strip()
        ]
        self.HOST = os.getenv('HOST', '0.0.0.0')
        self.PORT = int(os.getenv('PORT', '5000'))

        # Logging
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
        self.LOG_PATH = os.getenv('LOG_PATH', '') or None
        self.LOG_FORMAT = os.getenv('LOG_FORMAT', DEFAULT_FORMAT)

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f'Unknown setting: {key}')
            setattr(self, key, value)
