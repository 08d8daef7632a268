"""
Services package for the exam analytics core.
"""

from .analytics import AnalyticsService
from .base import BaseService
from .cache import NEGATIVE_RESULT, CacheStore
from .score_repository import ScoreRepository

__all__ = ['AnalyticsService', 'BaseService', 'CacheStore', 'NEGATIVE_RESULT', 'ScoreRepository']
