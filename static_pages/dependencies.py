from functools import lru_cache

from static_pages.config import get_settings
from static_pages.services.cache import TimedCache
from static_pages.services.careers import CareersService
from static_pages.services.feed import FeedService


@lru_cache
def get_content_cache() -> TimedCache:
    """The single content cache shared by every service in this process."""
    return TimedCache(refresh_timeout=get_settings().refresh_timeout_seconds)


@lru_cache
def get_feed_service() -> FeedService:
    return FeedService(get_settings(), get_content_cache())


@lru_cache
def get_careers_service() -> CareersService:
    return CareersService(get_settings(), get_content_cache())
