"""Table repositories used by the cached data API."""

from travelcache.infrastructure.repositories.base import BaseRepository
from travelcache.infrastructure.repositories.blogs import BlogRepository
from travelcache.infrastructure.repositories.categories import CategoryRepository
from travelcache.infrastructure.repositories.comments import CommentRepository
from travelcache.infrastructure.repositories.videos import VideoRepository

__all__ = [
    "BaseRepository",
    "BlogRepository",
    "CategoryRepository",
    "CommentRepository",
    "VideoRepository",
]
