"""Post Store Contract Tests

These tests verify both storage bindings honour the PostStore contract:
the SQL and HTTP requests they issue, and how their failures surface as
StorageError.
"""
import asyncio
import json
from contextlib import asynccontextmanager
from datetime import date
from unittest.mock import AsyncMock

import aiohttp
import asyncpg
import pytest

from blogstore.database.init import DatabaseInitializer
from blogstore.database.post_store import PostgresPostStore, open_postgres_store, translate_database_errors
from blogstore.database.rest_store import RestPostStore, open_rest_store, storage_error_from_payload
from blogstore.database.store import ExecutionContext, store_factory
from blogstore.lib.error_handler import classify_error
from blogstore.lib.errors import NETWORK_ERROR, UNIQUE_VIOLATION, ConfigurationError, StorageError
from blogstore.models.config import DEFAULT_CONFIG
from blogstore.models.outcome import ErrorCategory
from blogstore.services.post_repository import PostRepository


class FakeResponse:
    """Minimal aiohttp response."""

    def __init__(self, status: int, body=None, text: str = ""):
        self.status = status
        self._body = body
        self._text = text

    async def json(self, content_type=None):
        return self._body

    async def text(self):
        if self._text or self._body is None:
            return self._text
        return json.dumps(self._body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records requests and replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, params=None, json=None, headers=None):
        self.requests.append(
            {"method": method, "url": url, "params": params, "json": json, "headers": headers}
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def sample_row() -> dict:
    return {
        "id": "hello-world",
        "title": "Hello World",
        "excerpt": "Intro",
        "content": "Body",
        "category": "Development",
        "author": "Ada",
        "date": "2024-02-01",
        "read_time": "1 min read",
    }


class TestPostgresPostStore:
    """Test PostgresPostStore queries against a mocked connection."""

    @pytest.fixture
    def db(self):
        return AsyncMock()

    @pytest.fixture
    def pg_store(self, db) -> PostgresPostStore:
        return PostgresPostStore(db, table="blogs")

    async def test_exists(self, pg_store, db):
        db.fetchval.return_value = True

        assert await pg_store.exists("hello-world")
        query, post_id = db.fetchval.call_args.args
        assert "SELECT EXISTS" in query
        assert post_id == "hello-world"

    async def test_insert_converts_date(self, pg_store, db, sample_row):
        db.fetchrow.return_value = {**sample_row, "date": date(2024, 2, 1)}

        record = await pg_store.insert(sample_row)

        query, *values = db.fetchrow.call_args.args
        assert "INSERT INTO blogs (id, title, excerpt, content, category, author, date, read_time)" in query
        assert "RETURNING *" in query
        assert values[0] == "hello-world"
        assert values[6] == date(2024, 2, 1)
        assert record["id"] == "hello-world"

    async def test_insert_unique_violation(self, pg_store, db, sample_row):
        db.fetchrow.side_effect = asyncpg.exceptions.UniqueViolationError(
            'duplicate key value violates unique constraint "blogs_pkey"'
        )

        with pytest.raises(StorageError) as exc_info:
            await pg_store.insert(sample_row)

        assert exc_info.value.code == UNIQUE_VIOLATION
        assert exc_info.value.is_unique_violation

    async def test_select_all_orders_by_date(self, pg_store, db, sample_row):
        db.fetch.return_value = [sample_row]

        rows = await pg_store.select_all()

        assert "ORDER BY date DESC" in db.fetch.call_args.args[0]
        assert rows == [sample_row]

    async def test_select_one_missing(self, pg_store, db):
        db.fetchrow.return_value = None

        assert await pg_store.select_one("missing") is None

    async def test_update_builds_assignments(self, pg_store, db, sample_row):
        db.fetchrow.return_value = {**sample_row, "title": "New"}

        record = await pg_store.update("hello-world", {"title": "New", "read_time": "2 min read", "id": "x"})

        query, *values = db.fetchrow.call_args.args
        assert "SET title = $2, read_time = $3 WHERE id = $1" in query
        assert values == ["hello-world", "New", "2 min read"]
        assert record["title"] == "New"

    async def test_update_missing_row(self, pg_store, db):
        db.fetchrow.return_value = None

        assert await pg_store.update("missing", {"title": "New"}) is None

    @pytest.mark.parametrize("status,expected", [("DELETE 1", True), ("DELETE 0", False)])
    async def test_delete(self, pg_store, db, status, expected):
        db.execute.return_value = status

        assert await pg_store.delete("hello-world") is expected

    async def test_permission_denied_classifies_as_rls(self, pg_store, db):
        db.fetch.side_effect = asyncpg.exceptions.InsufficientPrivilegeError(
            "permission denied for table blogs"
        )

        with pytest.raises(StorageError) as exc_info:
            await pg_store.select_all()

        assert classify_error(exc_info.value) == ErrorCategory.RLS


class TestTranslateDatabaseErrors:
    """Test transport failures become network StorageErrors."""

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionRefusedError("Connect call failed"),
            asyncio.TimeoutError(),
            asyncpg.InterfaceError("connection is closed"),
        ],
    )
    def test_transport_failures(self, error):
        with pytest.raises(StorageError) as exc_info:
            with translate_database_errors():
                raise error

        assert exc_info.value.code == NETWORK_ERROR
        assert classify_error(exc_info.value) == ErrorCategory.NETWORK

    def test_other_exceptions_pass_through(self):
        with pytest.raises(KeyError):
            with translate_database_errors():
                raise KeyError("id")


class TestRestPostStore:
    """Test RestPostStore requests against a fake session."""

    def _store(self, *responses) -> RestPostStore:
        return RestPostStore(FakeSession(*responses), "https://example.supabase.co/", table="blogs")

    async def test_endpoint(self):
        store = self._store()

        assert store.endpoint == "https://example.supabase.co/rest/v1/blogs"

    async def test_exists(self):
        store = self._store(FakeResponse(200, [{"id": "post"}]))

        assert await store.exists("post")
        request = store.session.requests[0]
        assert request["method"] == "GET"
        assert request["params"] == {"select": "id", "id": "eq.post", "limit": "1"}

    async def test_insert_requests_representation(self, sample_row):
        store = self._store(FakeResponse(201, [sample_row]))

        record = await store.insert(sample_row)

        request = store.session.requests[0]
        assert request["method"] == "POST"
        assert request["headers"] == {"Prefer": "return=representation"}
        assert request["json"]["read_time"] == "1 min read"
        assert record == sample_row

    async def test_insert_hidden_by_policy(self, sample_row):
        store = self._store(FakeResponse(201, []))

        with pytest.raises(StorageError) as exc_info:
            await store.insert(sample_row)

        assert classify_error(exc_info.value) == ErrorCategory.RLS

    async def test_duplicate_id(self, sample_row):
        body = '{"code":"23505","message":"duplicate key value violates unique constraint \\"blogs_pkey\\""}'
        store = self._store(FakeResponse(409, text=body))

        with pytest.raises(StorageError) as exc_info:
            await store.insert(sample_row)

        assert exc_info.value.is_unique_violation

    async def test_select_all_order(self):
        store = self._store(FakeResponse(200, []))

        assert await store.select_all() == []
        assert store.session.requests[0]["params"]["order"] == "date.desc"

    async def test_update_missing_row(self):
        store = self._store(FakeResponse(200, []))

        assert await store.update("missing", {"title": "New"}) is None
        assert store.session.requests[0]["method"] == "PATCH"

    async def test_delete(self):
        store = self._store(FakeResponse(200, [{"id": "post"}]), FakeResponse(200, []))

        assert await store.delete("post") is True
        assert await store.delete("post") is False

    async def test_no_content(self):
        store = self._store(FakeResponse(204))

        assert await store.select_one("post") is None

    async def test_client_error_is_network(self):
        store = self._store(aiohttp.ClientConnectionError("Cannot connect to host"))

        with pytest.raises(StorageError) as exc_info:
            await store.select_all()

        assert exc_info.value.code == NETWORK_ERROR

    async def test_non_json_success_body(self):
        """Test an HTML page served with 200 becomes a StorageError."""
        store = self._store(FakeResponse(200, text="<html>Next.js app</html>"))

        with pytest.raises(StorageError) as exc_info:
            await store.select_all()

        assert exc_info.value.code == "200"
        assert store.endpoint in exc_info.value.message

    async def test_non_list_json_body(self):
        store = self._store(FakeResponse(200, {"status": "ok"}))

        with pytest.raises(StorageError):
            await store.select_one("post")

    async def test_html_page_is_reported_by_repository(self):
        """Test the repository returns a generic failure instead of raising."""
        session = FakeSession(FakeResponse(200, text="<html>Next.js app</html>"))

        @asynccontextmanager
        async def open_store():
            yield RestPostStore(session, "http://localhost:3000", "blogs")

        result = await PostRepository(open_store).read_all()

        assert not result.ok
        assert result.error.category == ErrorCategory.GENERIC
        assert "Unexpected response" in result.error.message


class TestOpenPostgresStore:
    """Test connection setup failures surface as StorageError."""

    BAD_PORT_URL = "postgresql://u:p@127.0.0.1:notaport/db"

    async def test_malformed_dsn(self):
        with pytest.raises(StorageError) as exc_info:
            async with open_postgres_store(self.BAD_PORT_URL, "blogs"):
                pass

        assert exc_info.value.message.startswith("Invalid database URL")

    async def test_malformed_dsn_is_reported_by_repository(self):
        def open_store():
            return open_postgres_store(self.BAD_PORT_URL, "blogs")

        result = await PostRepository(open_store).read_all()

        assert not result.ok
        assert result.error.category == ErrorCategory.GENERIC


class TestStorageErrorFromPayload:
    """Test PostgREST error payload conversion."""

    def test_json_payload(self):
        error = storage_error_from_payload(
            403,
            {"code": "42501", "message": "new row violates row-level security policy", "hint": None},
        )

        assert error.code == "42501"
        assert classify_error(error) == ErrorCategory.RLS

    def test_text_payload(self):
        error = storage_error_from_payload(502, "Bad Gateway")

        assert error.message == "Bad Gateway"
        assert error.code == "502"

    def test_empty_payload(self):
        assert storage_error_from_payload(500, "").message == "HTTP 500"


class TestStoreFactory:
    """Test execution context to binding mapping."""

    @pytest.fixture
    def config(self) -> dict:
        return {key: str(value) for key, value in DEFAULT_CONFIG.items()}

    def test_render_uses_database(self, config):
        factory = store_factory(ExecutionContext.RENDER, config)

        assert factory.func.__name__ == "open_postgres_store"
        assert factory.args == (config["database.url"], "blogs")

    def test_interactive_uses_rest_gateway(self, config):
        factory = store_factory(ExecutionContext.INTERACTIVE, config)

        assert factory.func.__name__ == "open_rest_store"
        assert factory.args[0] == config["supabase.url"]

    async def test_rest_store_requires_key(self):
        with pytest.raises(ConfigurationError):
            async with open_rest_store("http://localhost:54321", ""):
                pass

    def test_context_from_string(self):
        assert ExecutionContext.from_string("RENDER") == ExecutionContext.RENDER
        with pytest.raises(ValueError):
            ExecutionContext.from_string("batch")


class TestDatabaseInitializer:
    """Test schema initialization statements."""

    @pytest.fixture
    def db(self):
        return AsyncMock()

    async def test_legacy_column_is_renamed(self, db):
        db.fetch.return_value = [{"column_name": "id"}, {"column_name": "readTime"}]

        await DatabaseInitializer(db).create_tables()

        statements = [call.args[0] for call in db.execute.call_args_list]
        assert any('RENAME COLUMN "readTime" TO read_time' in s for s in statements)
        assert not any("POLICY" in s for s in statements)

    async def test_missing_column_is_added(self, db):
        db.fetch.return_value = [{"column_name": "id"}]

        await DatabaseInitializer(db).create_tables()

        statements = [call.args[0] for call in db.execute.call_args_list]
        assert any("ADD COLUMN read_time TEXT" in s for s in statements)

    async def test_policies_applied_on_request(self, db):
        db.fetch.return_value = [{"column_name": "read_time"}]

        await DatabaseInitializer(db, table="articles").create_tables(policy_mode="production")

        statements = [call.args[0] for call in db.execute.call_args_list]
        assert "ALTER TABLE articles ENABLE ROW LEVEL SECURITY" in statements
        assert any("auth.role() = 'authenticated'" in s for s in statements)

    async def test_table_info_when_missing(self, db):
        db.fetchval.return_value = False

        assert await DatabaseInitializer(db).get_table_info() == {"exists": False, "row_count": 0}
