"""Tests for InMemoryCacheBackend."""

from datetime import timedelta

import pytest

from travelcache.infrastructure.backends.memory import InMemoryCacheBackend, compile_glob


class TestInMemoryCacheBackend:
    """Tests for InMemoryCacheBackend."""

    @pytest.fixture
    def backend(self, clock) -> InMemoryCacheBackend:
        """Create a backend on the fake clock."""
        return InMemoryCacheBackend(default_ttl=300.0, clock=clock)

    @pytest.mark.asyncio
    async def test_set_and_get(self, backend: InMemoryCacheBackend) -> None:
        """Test basic set and get operations."""
        await backend.set("key1", b"value1")
        assert await backend.get("key1") == b"value1"

    @pytest.mark.asyncio
    async def test_get_missing_key(self, backend: InMemoryCacheBackend) -> None:
        """Test getting a missing key returns None."""
        assert await backend.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_delete(self, backend: InMemoryCacheBackend) -> None:
        """Test deleting a key."""
        await backend.set("key1", b"value1")

        assert await backend.delete("key1") is True
        assert await backend.get("key1") is None
        assert await backend.delete("key1") is False

    @pytest.mark.asyncio
    async def test_exists(self, backend: InMemoryCacheBackend) -> None:
        """Test checking if key exists."""
        await backend.set("key1", b"value1")

        assert await backend.exists("key1") is True
        assert await backend.exists("nonexistent") is False

    @pytest.mark.asyncio
    async def test_clear(self, backend: InMemoryCacheBackend) -> None:
        """Test clearing all keys."""
        await backend.set("key1", b"value1")
        await backend.set("key2", b"value2")

        await backend.clear()

        assert await backend.get("key1") is None
        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_delete_pattern(self, backend: InMemoryCacheBackend) -> None:
        """Test deleting keys by pattern."""
        await backend.set("travelweb:blogs:abc:zh", b"1")
        await backend.set("travelweb:blogs:stats", b"2")
        await backend.set("travelweb:videos:abc:zh", b"3")

        assert await backend.delete_pattern("travelweb:blogs:*") == 2

        assert await backend.get("travelweb:blogs:stats") is None
        assert await backend.get("travelweb:videos:abc:zh") == b"3"

    @pytest.mark.asyncio
    async def test_ttl_expiry_is_lazy(self, backend: InMemoryCacheBackend, clock) -> None:
        """Test expired entries linger until read, then disappear."""
        await backend.set("key1", b"value1", ttl=timedelta(seconds=10))
        clock.advance(10)

        assert len(backend) == 1
        assert backend.active_count() == 0
        assert await backend.get("key1") is None
        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_default_ttl(self, backend: InMemoryCacheBackend, clock) -> None:
        """Test entries without a TTL use the default."""
        await backend.set("key1", b"value1")

        clock.advance(299)
        assert await backend.exists("key1") is True
        clock.advance(1)
        assert await backend.exists("key1") is False

    @pytest.mark.asyncio
    async def test_no_default_ttl(self, clock) -> None:
        """Test a None default keeps entries until deleted."""
        backend = InMemoryCacheBackend(default_ttl=None, clock=clock)
        await backend.set("key1", b"value1")

        clock.advance(10**6)
        assert await backend.get("key1") == b"value1"

    def test_len(self) -> None:
        """Test getting cache size."""
        assert len(InMemoryCacheBackend()) == 0


class TestCompileGlob:
    """Tests for glob translation."""

    def test_star_matches_any_run(self) -> None:
        """Test * matches any characters, including separators."""
        regex = compile_glob("p:blog:*")
        assert regex.fullmatch("p:blog:1:zh")
        assert regex.fullmatch("p:blog:")

    def test_match_is_anchored(self) -> None:
        """Test the whole key must match."""
        regex = compile_glob("p:blog:1:*")
        assert not regex.fullmatch("x:p:blog:1:zh")
        assert not regex.fullmatch("p:blog:10:zh")

    def test_regex_characters_are_literal(self) -> None:
        """Test characters other than * have no special meaning."""
        regex = compile_glob("p:search?[a]:*")
        assert regex.fullmatch("p:search?[a]:1")
        assert not regex.fullmatch("p:searchX[a]:1")
        assert not regex.fullmatch("p:search?a:1")
