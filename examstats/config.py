import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Analytics service configuration settings"""

    # Database settings
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///exam_scores.db')

    # Cache settings
    REDIS_URL = os.getenv('REDIS_URL')
    CACHE_NAMESPACE = os.getenv('CACHE_NAMESPACE', 'examstats')
    CACHE_TTL_SECONDS = int(os.getenv('CACHE_TTL_SECONDS', 3600))       # 1 hour
    CACHE_TTL_VARIANCE = int(os.getenv('CACHE_TTL_VARIANCE', 60))       # +/- 60 seconds of jitter
    NEGATIVE_CACHE_TTL_SECONDS = int(os.getenv('NEGATIVE_CACHE_TTL_SECONDS', 3600))

    # Runtime settings
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    LOG_TO_FILE = os.getenv('LOG_TO_FILE', 'True').lower() == 'true'

    # Ranking settings
    TOP_K_MAX = 1000
    DEFAULT_TOP_K = 10
    MEMBERSHIP_WINDOW = 10  # "is this student in the top 10"

    @classmethod
    def get_async_database_url(cls):
        """Get the database URL with an async driver"""
        database_url = cls.DATABASE_URL
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        return database_url

    @classmethod
    def validate(cls):
        """Validate that configuration values are usable"""
        if not cls.CACHE_NAMESPACE:
            raise ValueError("CACHE_NAMESPACE must not be empty")
        if cls.CACHE_TTL_SECONDS < 1:
            raise ValueError("CACHE_TTL_SECONDS must be at least 1")
        if cls.CACHE_TTL_VARIANCE < 0:
            raise ValueError("CACHE_TTL_VARIANCE must not be negative")
        if cls.NEGATIVE_CACHE_TTL_SECONDS < 1:
            raise ValueError("NEGATIVE_CACHE_TTL_SECONDS must be at least 1")
