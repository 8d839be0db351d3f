"""Tests for QueryBuilder."""

from unittest.mock import AsyncMock

import pytest

from travelcache import ExecuteResult, QueryBuilder, QueryStateError


def placeholder_count(sql: str) -> int:
    return sql.count("?")


class TestSelect:
    """Tests for SELECT rendering."""

    def test_videos_listing_scenario(self) -> None:
        """Test the canonical listing query renders exactly."""
        sql, params = (
            QueryBuilder()
            .table("videos")
            .select(["id", "title"])
            .where("status", "active")
            .order_by("created_at", "DESC")
            .limit(10)
            .offset(0)
            .build()
        )

        assert sql == (
            "SELECT id, title FROM videos WHERE status = ? "
            "ORDER BY created_at DESC LIMIT 10 OFFSET 0"
        )
        assert params == ["active"]

    def test_select_defaults_to_star(self) -> None:
        """Test a bare select projects every column."""
        compiled = QueryBuilder().table("blogs").select().build()
        assert compiled.sql == "SELECT * FROM blogs"
        assert compiled.params == []

    def test_operators_and_connectives(self) -> None:
        """Test explicit operators and OR conditions."""
        sql, params = (
            QueryBuilder()
            .table("blogs")
            .select("id")
            .where("view_count", ">=", 10)
            .or_where("status", "published")
            .where_like("title", "%kyoto%")
            .build()
        )

        assert sql == (
            "SELECT id FROM blogs WHERE view_count >= ? OR status = ? AND title LIKE ?"
        )
        assert params == [10, "published", "%kyoto%"]

    def test_null_predicates_take_no_parameters(self) -> None:
        """Test IS NULL / IS NOT NULL emit no placeholder."""
        sql, params = (
            QueryBuilder()
            .table("comments")
            .select()
            .where_null("parent_id")
            .where_not_null("author_email")
            .build()
        )

        assert sql == (
            "SELECT * FROM comments WHERE parent_id IS NULL AND author_email IS NOT NULL"
        )
        assert params == []

    def test_where_in_expands_placeholders(self) -> None:
        """Test IN renders one placeholder per value."""
        sql, params = (
            QueryBuilder().table("videos").select().where_in("id", [3, 1, 2]).build()
        )
        assert sql == "SELECT * FROM videos WHERE id IN (?, ?, ?)"
        assert params == [3, 1, 2]

    def test_empty_where_in_renders_false_predicate(self) -> None:
        """Test an empty IN list matches nothing instead of breaking the SQL."""
        sql, params = (
            QueryBuilder()
            .table("videos")
            .select()
            .where("status", "active")
            .where_in("id", [])
            .build()
        )
        assert sql == "SELECT * FROM videos WHERE status = ? AND 1=0"
        assert params == ["active"]

    def test_empty_not_in_renders_true_predicate(self) -> None:
        """Test an empty NOT IN list excludes nothing."""
        sql, params = (
            QueryBuilder().table("videos").select().where("id", "NOT IN", []).build()
        )
        assert sql == "SELECT * FROM videos WHERE 1=1"
        assert params == []

    def test_where_group_is_parenthesised(self) -> None:
        """Test grouped OR conditions keep their own parentheses."""
        sql, params = (
            QueryBuilder()
            .table("blogs")
            .select()
            .where("status", "published")
            .where_group(
                lambda q: q.or_where("title", "LIKE", "%a%").or_where("title_en", "LIKE", "%a%")
            )
            .build()
        )

        assert sql == (
            "SELECT * FROM blogs WHERE status = ? AND (title LIKE ? OR title_en LIKE ?)"
        )
        assert params == ["published", "%a%", "%a%"]

    def test_joins_grouping_and_having(self) -> None:
        """Test join, GROUP BY and HAVING ordering within the statement."""
        sql, params = (
            QueryBuilder()
            .table("blogs b")
            .select(["b.id", "COUNT(c.id) AS comments"])
            .left_join("comments c", "c.blog_id = b.id")
            .where("b.status", "published")
            .group_by("b.id")
            .having("COUNT(c.id)", ">", 2)
            .order_by("comments", "desc")
            .build()
        )

        assert sql == (
            "SELECT b.id, COUNT(c.id) AS comments FROM blogs b "
            "LEFT JOIN comments c ON c.blog_id = b.id "
            "WHERE b.status = ? GROUP BY b.id HAVING COUNT(c.id) > ? "
            "ORDER BY comments DESC"
        )
        assert params == ["published", 2]

    def test_right_and_inner_joins(self) -> None:
        """Test right and inner joins render in call order before WHERE."""
        sql, params = (
            QueryBuilder()
            .table("comments c")
            .select(["c.id", "b.title"])
            .right_join("blogs b", "b.id = c.blog_id")
            .join("categories k", "k.slug = b.category")
            .where("k.is_active", 1)
            .build()
        )

        assert sql == (
            "SELECT c.id, b.title FROM comments c "
            "RIGHT JOIN blogs b ON b.id = c.blog_id "
            "INNER JOIN categories k ON k.slug = b.category "
            "WHERE k.is_active = ?"
        )
        assert params == [1]

    def test_group_by_ignores_duplicates(self) -> None:
        """Test repeated group_by fields are only rendered once."""
        sql, _ = (
            QueryBuilder()
            .table("blogs")
            .select(["status", "category"])
            .group_by("status")
            .group_by(["status", "category"])
            .build()
        )
        assert sql.endswith("GROUP BY status, category")

    @pytest.mark.parametrize(
        "chain",
        [
            lambda q: q.where("a", 1),
            lambda q: q.where("a", 1).or_where("b", "<", 2).where_in("c", [1, 2, 3]),
            lambda q: q.where_in("a", []).where_like("b", "%x%").where_null("c"),
            lambda q: q.where_group(lambda g: g.where("a", 1).or_where("b", 2)).where("c", 3),
            lambda q: q.where("a", "NOT IN", [4, 5]).where_not_null("b").or_where("c", "?"),
        ],
    )
    def test_params_match_placeholders(self, chain) -> None:
        """Test every placeholder has exactly one parameter."""
        compiled = chain(QueryBuilder().table("t").select()).build()
        assert placeholder_count(compiled.sql) == len(compiled.params)


class TestWrites:
    """Tests for INSERT, UPDATE and DELETE rendering."""

    def test_insert(self) -> None:
        """Test INSERT preserves column order."""
        sql, params = (
            QueryBuilder()
            .table("categories")
            .insert({"name": "Asia", "sort_order": 1})
            .build()
        )
        assert sql == "INSERT INTO categories (name, sort_order) VALUES (?, ?)"
        assert params == ["Asia", 1]

    def test_update_orders_set_before_where(self) -> None:
        """Test SET parameters come before WHERE parameters."""
        sql, params = (
            QueryBuilder()
            .table("blogs")
            .update({"title": "New", "status": "draft"})
            .where("id", 7)
            .build()
        )
        assert sql == "UPDATE blogs SET title = ?, status = ? WHERE id = ?"
        assert params == ["New", "draft", 7]

    def test_delete(self) -> None:
        """Test DELETE with a condition."""
        sql, params = QueryBuilder().table("comments").delete().where("blog_id", 3).build()
        assert sql == "DELETE FROM comments WHERE blog_id = ?"
        assert params == [3]

    def test_empty_payload_is_rejected(self) -> None:
        """Test insert/update need at least one column."""
        with pytest.raises(ValueError):
            QueryBuilder().table("blogs").insert({})
        with pytest.raises(ValueError):
            QueryBuilder().table("blogs").update({})


class TestValidation:
    """Tests for builder state and argument checks."""

    def test_build_without_operation(self) -> None:
        """Test building with no operation raises QueryStateError."""
        with pytest.raises(QueryStateError):
            QueryBuilder().table("blogs").build()

    def test_build_without_table(self) -> None:
        """Test building with no table raises QueryStateError."""
        with pytest.raises(QueryStateError):
            QueryBuilder().select().build()

    def test_second_operation_is_rejected(self) -> None:
        """Test switching operation without reset raises QueryStateError."""
        builder = QueryBuilder().table("blogs").select()
        with pytest.raises(QueryStateError):
            builder.delete()

    def test_same_operation_twice_is_allowed(self) -> None:
        """Test calling select() twice replaces the projection."""
        compiled = QueryBuilder().table("blogs").select("id").select(["id", "title"]).build()
        assert compiled.sql == "SELECT id, title FROM blogs"

    @pytest.mark.parametrize("bad", [-1, 1.5, "10", True])
    def test_limit_must_be_non_negative_int(self, bad) -> None:
        """Test limit/offset reject anything but non-negative ints."""
        with pytest.raises(ValueError):
            QueryBuilder().limit(bad)
        with pytest.raises(ValueError):
            QueryBuilder().offset(bad)

    def test_unknown_operator(self) -> None:
        """Test unsupported operators are rejected."""
        with pytest.raises(ValueError):
            QueryBuilder().where("a", "; DROP TABLE blogs", 1)

    def test_operator_is_normalised(self) -> None:
        """Test operators are case and whitespace insensitive."""
        sql, _ = QueryBuilder().table("t").select().where("a", "not   like", "%x").build()
        assert sql == "SELECT * FROM t WHERE a NOT LIKE ?"

    def test_having_rejects_in(self) -> None:
        """Test HAVING only accepts comparison operators."""
        with pytest.raises(ValueError):
            QueryBuilder().having("COUNT(*)", "IN", [1])

    def test_bad_direction(self) -> None:
        """Test order_by only accepts ASC/DESC."""
        with pytest.raises(ValueError):
            QueryBuilder().order_by("id", "sideways")


class TestReset:
    """Tests for reset() idempotence."""

    @staticmethod
    def build_listing(builder: QueryBuilder):
        return (
            builder.table("blogs")
            .select(["id", "title"])
            .where("status", "published")
            .where_in("category", ["asia", "europe"])
            .order_by("created_at", "DESC")
            .limit(20)
            .offset(40)
            .build()
        )

    def test_reset_then_rebuild_is_identical(self) -> None:
        """Test a reset builder renders byte-identical SQL for the same chain."""
        builder = QueryBuilder()
        first = self.build_listing(builder)
        builder.reset()
        second = self.build_listing(builder)

        assert first.sql == second.sql
        assert first.params == second.params

    def test_reset_allows_new_operation(self) -> None:
        """Test reset clears the recorded operation."""
        builder = QueryBuilder().table("blogs").select()
        builder.reset().table("blogs").delete().where("id", 1)
        assert builder.build().sql == "DELETE FROM blogs WHERE id = ?"


class TestExecution:
    """Tests for the terminal methods."""

    @pytest.fixture
    def connection(self) -> AsyncMock:
        """Create a mocked adapter."""
        connection = AsyncMock()
        connection.query.return_value = [{"id": 1}]
        connection.execute.return_value = ExecuteResult(affected_rows=1, insert_id=9)
        return connection

    @pytest.mark.asyncio
    async def test_get_defaults_to_select(self, connection: AsyncMock) -> None:
        """Test get() works without an explicit select()."""
        rows = await QueryBuilder(connection).table("blogs").where("id", 1).get()

        assert rows == [{"id": 1}]
        connection.query.assert_awaited_once_with("SELECT * FROM blogs WHERE id = ?", [1])

    @pytest.mark.asyncio
    async def test_first_limits_to_one(self, connection: AsyncMock) -> None:
        """Test first() adds LIMIT 1 and unwraps the row."""
        row = await QueryBuilder(connection).table("blogs").first()

        assert row == {"id": 1}
        connection.query.assert_awaited_once_with("SELECT * FROM blogs LIMIT 1", [])

    @pytest.mark.asyncio
    async def test_first_returns_none_when_empty(self, connection: AsyncMock) -> None:
        """Test first() on an empty result."""
        connection.query.return_value = []
        assert await QueryBuilder(connection).table("blogs").first() is None

    @pytest.mark.asyncio
    async def test_count_ignores_paging_and_restores_it(self, connection: AsyncMock) -> None:
        """Test count() on a paged builder counts every match."""
        connection.query.return_value = [{"count": 57}]
        builder = (
            QueryBuilder(connection)
            .table("blogs")
            .select(["id"])
            .where("status", "published")
            .order_by("created_at", "DESC")
            .limit(10)
            .offset(20)
        )

        assert await builder.count() == 57
        connection.query.assert_awaited_once_with(
            "SELECT COUNT(*) AS count FROM blogs WHERE status = ? LIMIT 1", ["published"]
        )
        assert builder.build().sql == (
            "SELECT id FROM blogs WHERE status = ? ORDER BY created_at DESC LIMIT 10 OFFSET 20"
        )

    @pytest.mark.asyncio
    async def test_execute_write(self, connection: AsyncMock) -> None:
        """Test execute() passes writes to the adapter."""
        result = await QueryBuilder(connection).table("blogs").insert({"title": "x"}).execute()

        assert result.insert_id == 9
        connection.execute.assert_awaited_once_with(
            "INSERT INTO blogs (title) VALUES (?)", ["x"]
        )

    @pytest.mark.asyncio
    async def test_execute_rejects_select(self, connection: AsyncMock) -> None:
        """Test execute() refuses SELECT."""
        with pytest.raises(QueryStateError):
            await QueryBuilder(connection).table("blogs").select().execute()

    @pytest.mark.asyncio
    async def test_unbound_builder_cannot_run(self) -> None:
        """Test terminal methods need an adapter."""
        with pytest.raises(QueryStateError):
            await QueryBuilder().table("blogs").get()
