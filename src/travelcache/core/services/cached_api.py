"""Read-through cached data API used by the HTTP route layer."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from travelcache.core.entities.cache_config import CacheConfig
from travelcache.core.entities.records import (
    Blog,
    Category,
    Comment,
    ListFilters,
    Page,
    Pagination,
    Video,
    to_int,
)
from travelcache.core.exceptions import TravelCacheError
from travelcache.core.interfaces.database_adapter import IConnectionHandle, IDatabaseAdapter
from travelcache.core.services.cache_manager import CacheManager
from travelcache.infrastructure.key_builders.default import CacheKeyBuilder
from travelcache.infrastructure.repositories import (
    BlogRepository,
    CategoryRepository,
    CommentRepository,
    VideoRepository,
)
from travelcache.infrastructure.repositories.blogs import blog_values
from travelcache.infrastructure.repositories.categories import category_values
from travelcache.infrastructure.repositories.comments import comment_values
from travelcache.infrastructure.repositories.videos import video_values

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Filters = ListFilters | Mapping[str, Any] | None


class CachedDataAPI:
    """Read-through caching over the content repositories.

    Reads consult the cache first and fill it on a miss. A cached
    payload is returned as stored, without checking the database. Not
    found results are not cached.

    Writes go to the database, then invalidate coarsely: the record's
    key in every locale, every list and aggregate of its kind, and the
    dashboard. This over-invalidates on purpose. After a successful
    write no read can return data older than that write, whatever
    filters it uses. Invalidation problems are logged and never fail a
    write that the database already accepted.

    Database errors always propagate. Cache errors never do.
    """

    def __init__(
        self,
        adapter: IDatabaseAdapter,
        cache: CacheManager,
        config: CacheConfig | None = None,
        key_builder: CacheKeyBuilder | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the API.

        Args:
            adapter: Database adapter; connected lazily on first use.
            cache: Cache manager, normally already initialised.
            config: Cache configuration. Defaults to the manager's.
            key_builder: Key layout. Defaults to one using the config prefix.
            logger: Operator logger; defaults to this module's logger.
        """
        self._adapter = adapter
        self._cache = cache
        self._config = config or cache.config
        self._keys = key_builder or CacheKeyBuilder(self._config.key_prefix)
        self._ttl = self._config.ttl
        self._logger = logger or _logger

    @property
    def keys(self) -> CacheKeyBuilder:
        return self._keys

    # ------------------------------------------------------------------
    # Blogs
    # ------------------------------------------------------------------

    async def get_blogs(self, filters: Filters = None) -> dict[str, Any]:
        """One page of blog posts: ``{"data": [...], "pagination": {...}}``."""
        normalized = self._filters(filters)

        async def load() -> dict[str, Any]:
            rows, total = await BlogRepository(self._adapter).find_page(normalized)
            data = [Blog.from_row(row, normalized.language).to_dict() for row in rows]
            return self._page(data, normalized, total)

        return await self._read_through(
            self._keys.list("blogs", normalized), self._ttl.medium, load
        )

    async def get_blog_by_id(
        self,
        blog_id: Any,
        language: str | None = None,
    ) -> dict[str, Any] | None:
        """A single post, or None if it does not exist."""
        item_id, locale = to_int(blog_id), self._locale(language)

        async def load() -> dict[str, Any] | None:
            row = await BlogRepository(self._adapter).find(item_id)
            return Blog.from_row(row, locale).to_dict() if row else None

        return await self._read_through(
            self._keys.item("blog", item_id, locale), self._ttl.long, load
        )

    async def get_blog_stats(self) -> dict[str, int]:
        return await self._read_through(
            self._keys.stats("blogs"),
            self._ttl.short,
            BlogRepository(self._adapter).stats,
        )

    async def create_blog(self, data: Mapping[str, Any]) -> dict[str, Any] | None:
        repo = BlogRepository(self._adapter)
        blog_id = await repo.insert(blog_values(data))
        await self._invalidate("blog", "blogs", blog_id)
        return await self._fresh(repo, Blog, blog_id)

    async def update_blog(
        self,
        blog_id: Any,
        data: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        """Apply a partial update; None if the post does not exist."""
        item_id = to_int(blog_id)
        repo = BlogRepository(self._adapter)
        existing = await repo.find(item_id)
        if existing is None:
            return None
        await repo.update(item_id, blog_values(data, existing=existing))
        await self._invalidate("blog", "blogs", item_id)
        return await self._fresh(repo, Blog, item_id)

    async def delete_blog(self, blog_id: Any) -> bool:
        """Delete a post together with its comments."""
        item_id = to_int(blog_id)

        async def remove(handle: IConnectionHandle) -> bool:
            await CommentRepository(handle).delete_for_blog(item_id)
            return await BlogRepository(handle).delete(item_id)

        deleted = await self._adapter.transaction(remove)
        if deleted:
            await self._invalidate(
                "blog",
                "blogs",
                item_id,
                self._keys.comments(item_id),
                self._keys.comment_count(item_id),
            )
        return deleted

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def get_videos(self, filters: Filters = None) -> dict[str, Any]:
        """One page of videos; ``status`` filters use the frontend vocabulary."""
        normalized = self._filters(filters)

        async def load() -> dict[str, Any]:
            rows, total = await VideoRepository(self._adapter).find_page(normalized)
            data = [Video.from_row(row, normalized.language).to_dict() for row in rows]
            return self._page(data, normalized, total)

        return await self._read_through(
            self._keys.list("videos", normalized), self._ttl.medium, load
        )

    async def get_video_by_id(
        self,
        video_id: Any,
        language: str | None = None,
    ) -> dict[str, Any] | None:
        item_id, locale = to_int(video_id), self._locale(language)

        async def load() -> dict[str, Any] | None:
            row = await VideoRepository(self._adapter).find(item_id)
            return Video.from_row(row, locale).to_dict() if row else None

        return await self._read_through(
            self._keys.item("video", item_id, locale), self._ttl.long, load
        )

    async def get_video_stats(self) -> dict[str, int]:
        return await self._read_through(
            self._keys.stats("videos"),
            self._ttl.short,
            VideoRepository(self._adapter).stats,
        )

    async def create_video(self, data: Mapping[str, Any]) -> dict[str, Any] | None:
        repo = VideoRepository(self._adapter)
        video_id = await repo.insert(video_values(data, creating=True))
        await self._invalidate("video", "videos", video_id)
        return await self._fresh(repo, Video, video_id)

    async def update_video(
        self,
        video_id: Any,
        data: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        item_id = to_int(video_id)
        repo = VideoRepository(self._adapter)
        if not await repo.update(item_id, video_values(data, creating=False)):
            return None
        await self._invalidate("video", "videos", item_id)
        return await self._fresh(repo, Video, item_id)

    async def delete_video(self, video_id: Any) -> bool:
        item_id = to_int(video_id)
        deleted = await VideoRepository(self._adapter).delete(item_id)
        if deleted:
            await self._invalidate("video", "videos", item_id)
        return deleted

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_categories(self, language: str | None = None) -> list[dict[str, Any]]:
        """Active categories in display order. Cached for the longest tier."""
        locale = self._locale(language)

        async def load() -> list[dict[str, Any]]:
            rows = await CategoryRepository(self._adapter).find_active()
            return [Category.from_row(row, locale).to_dict() for row in rows]

        return await self._read_through(
            self._keys.categories(locale), self._ttl.very_long, load
        )

    async def create_category(self, data: Mapping[str, Any]) -> dict[str, Any] | None:
        repo = CategoryRepository(self._adapter)
        category_id = await repo.insert(category_values(data, creating=True))
        await self._invalidate("category", "categories", category_id)
        return await self._fresh(repo, Category, category_id)

    async def update_category(
        self,
        category_id: Any,
        data: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        item_id = to_int(category_id)
        repo = CategoryRepository(self._adapter)
        if not await repo.update(item_id, category_values(data, creating=False)):
            return None
        await self._invalidate("category", "categories", item_id)
        return await self._fresh(repo, Category, item_id)

    async def delete_category(self, category_id: Any) -> bool:
        item_id = to_int(category_id)
        deleted = await CategoryRepository(self._adapter).delete(item_id)
        if deleted:
            await self._invalidate("category", "categories", item_id)
        return deleted

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def get_comments(self, blog_id: Any) -> list[dict[str, Any]]:
        """Approved comments of a post, newest first."""
        item_id = to_int(blog_id)

        async def load() -> list[dict[str, Any]]:
            rows = await CommentRepository(self._adapter).find_for_blog(item_id)
            return [Comment.from_row(row).to_dict() for row in rows]

        return await self._read_through(self._keys.comments(item_id), self._ttl.short, load)

    async def get_comment_count(self, blog_id: Any) -> int:
        item_id = to_int(blog_id)
        return await self._read_through(
            self._keys.comment_count(item_id),
            self._ttl.short,
            lambda: CommentRepository(self._adapter).count_for_blog(item_id),
        )

    async def create_comment(self, data: Mapping[str, Any]) -> dict[str, Any] | None:
        """Store a comment and refresh the post's comment count atomically."""
        values = comment_values(data)
        blog_id = to_int(values.get("blog_id"))
        if not blog_id:
            raise ValueError("A comment needs the id of its blog post")

        async def store(handle: IConnectionHandle) -> dict[str, Any] | None:
            comments = CommentRepository(handle)
            comment_id = await comments.insert(values)
            await BlogRepository(handle).refresh_comment_count(blog_id)
            row = await comments.find(comment_id) if comment_id else None
            return Comment.from_row(row).to_dict() if row else None

        comment = await self._adapter.transaction(store)
        await self._invalidate_comments(blog_id)
        return comment

    async def delete_comment(self, comment_id: Any) -> bool:
        item_id = to_int(comment_id)

        async def remove(handle: IConnectionHandle) -> int | None:
            comments = CommentRepository(handle)
            row = await comments.find(item_id)
            if row is None:
                return None
            await comments.delete(item_id)
            blog_id = to_int(row.get("blog_id"))
            await BlogRepository(handle).refresh_comment_count(blog_id)
            return blog_id

        blog_id = await self._adapter.transaction(remove)
        if blog_id is None:
            return False
        await self._invalidate_comments(blog_id)
        return True

    async def update_comment_status(
        self, comment_id: Any, status: str
    ) -> dict[str, Any] | None:
        """Change a comment's moderation status, e.g. pending to approved.

        Only approved comments are listed and counted, so the post's
        comment count is refreshed in the same transaction. Returns None
        when the comment does not exist.
        """
        item_id = to_int(comment_id)
        new_status = str(status or "").strip()
        if not new_status:
            raise ValueError("A comment status is required")

        async def moderate(handle: IConnectionHandle) -> tuple[int, dict[str, Any]] | None:
            comments = CommentRepository(handle)
            row = await comments.find(item_id)
            if row is None:
                return None
            await comments.set_status(item_id, new_status)
            blog_id = to_int(row.get("blog_id"))
            await BlogRepository(handle).refresh_comment_count(blog_id)
            updated = await comments.find(item_id)
            return blog_id, Comment.from_row(updated or row).to_dict()

        moderated = await self._adapter.transaction(moderate)
        if moderated is None:
            return None
        blog_id, comment = moderated
        await self._invalidate_comments(blog_id)
        return comment

    # ------------------------------------------------------------------
    # Dashboard and cache management
    # ------------------------------------------------------------------

    async def get_dashboard_stats(self) -> dict[str, int]:
        async def load() -> dict[str, int]:
            blogs = await BlogRepository(self._adapter).stats()
            videos = await VideoRepository(self._adapter).stats()
            return {
                "totalBlogs": blogs["total"],
                "publishedBlogs": blogs["published"],
                "draftBlogs": blogs["draft"],
                "totalVideos": videos["total"],
                "publishedVideos": videos["published"],
                "draftVideos": videos["draft"],
                "totalComments": await CommentRepository(self._adapter).count_approved(),
                "totalCategories": await CategoryRepository(self._adapter).count_active(),
                "totalBlogViews": await BlogRepository(self._adapter).total("view_count"),
                "totalVideoViews": await VideoRepository(self._adapter).total("view_count"),
            }

        return await self._read_through(self._keys.dashboard(), self._ttl.short, load)

    async def warmup_cache(self) -> bool:
        """Pre-populate the busiest keys: first pages, categories and stats.

        Returns:
            False if a database error interrupted the warm-up. The error
            is logged, not raised.
        """
        try:
            for locale in self._config.locales:
                await self.get_blogs({"language": locale})
                await self.get_videos({"language": locale})
                await self.get_categories(locale)
            await self.get_blog_stats()
            await self.get_video_stats()
            await self.get_dashboard_stats()
        except TravelCacheError as e:
            self._logger.error("Cache warm-up failed: %s", e)
            return False
        self._logger.info("Cache warm-up complete")
        return True

    async def get_cache_stats(self) -> dict[str, Any]:
        return await self._cache.get_stats()

    async def clear_all_cache(self) -> bool:
        return await self._cache.flush_all()

    async def health(self) -> dict[str, Any]:
        """Report database reachability and the active cache tier.

        ``degraded`` is True when the database cannot be reached; the
        route layer decides what to serve in that case.
        """
        database_ok = await self._adapter.test_connection()
        return {
            "database": {
                "connected": database_ok,
                "dialect": self._adapter.dialect.value,
                "pool": self._adapter.pool_stats(),
            },
            "cache": {
                "remote": self._cache.is_available(),
                "state": self._cache.state.value,
            },
            "degraded": not database_ok,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _read_through(
        self,
        key: str,
        ttl: int,
        load: Callable[[], Awaitable[T]],
    ) -> T:
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        value = await load()
        if value is not None:
            await self._cache.set(key, value, ttl)
        return value

    async def _invalidate(
        self,
        kind: str,
        kinds: str,
        item_id: Any | None,
        *extra_keys: str,
    ) -> None:
        patterns = [self._keys.kind_pattern(kinds)]
        if item_id is not None:
            patterns.insert(0, self._keys.item_pattern(kind, item_id))
        await self._evict(patterns, [self._keys.dashboard(), *extra_keys])

    async def _invalidate_comments(self, blog_id: int) -> None:
        await self._evict(
            [self._keys.item_pattern("blog", blog_id), self._keys.kind_pattern("blogs")],
            [
                self._keys.comments(blog_id),
                self._keys.comment_count(blog_id),
                self._keys.dashboard(),
            ],
        )

    async def _evict(self, patterns: list[str], keys: list[str]) -> None:
        try:
            for pattern in patterns:
                if not await self._cache.delete_pattern(pattern):
                    self._logger.warning("Stale entries may remain for %s", pattern)
            for key in keys:
                await self._cache.delete(key)
        except Exception:
            self._logger.exception("Cache invalidation failed for %s", patterns)

    async def _fresh(
        self,
        repo: Any,
        record: type[Blog] | type[Video] | type[Category],
        item_id: int | None,
    ) -> dict[str, Any] | None:
        """Read a just-written row straight from the database."""
        if item_id is None:
            return None
        row = await repo.find(item_id)
        return record.from_row(row, self._config.default_locale).to_dict() if row else None

    def _filters(self, filters: Filters) -> ListFilters:
        if isinstance(filters, ListFilters):
            normalized = filters
        else:
            normalized = ListFilters.from_mapping(filters, self._config.default_locale)
        if normalized.language not in self._config.locales:
            normalized = ListFilters(
                page=normalized.page,
                limit=normalized.limit,
                status=normalized.status,
                category=normalized.category,
                search=normalized.search,
                language=self._config.default_locale,
                platform=normalized.platform,
            )
        return normalized

    def _locale(self, language: str | None) -> str:
        if language in self._config.locales:
            return language  # type: ignore[return-value]
        return self._config.default_locale

    @staticmethod
    def _page(data: list[dict[str, Any]], filters: ListFilters, total: int) -> dict[str, Any]:
        return Page(data, Pagination.build(filters.page, filters.limit, total)).to_dict()
