"""Tests for ConfigNamespace caching and background refresh."""

import asyncio

import pytest

from celerity_config.errors import BackendError, ConfigKeyNotFound
from celerity_config.namespace import ConfigNamespace
from celerity_config.testing import MockConfigBackend, network_error


class TestAccessors:
    """Tests for get/get_or_throw/get_all/parse."""

    @pytest.fixture
    def namespace(self, db_backend):
        return ConfigNamespace(db_backend, "test-store", None, name="app")

    async def test_get_returns_value(self, namespace):
        assert await namespace.get("DB_HOST") == "localhost"

    async def test_get_missing_key_returns_none(self, namespace):
        assert await namespace.get("MISSING") is None

    async def test_get_or_throw_returns_value(self, namespace):
        assert await namespace.get_or_throw("DB_PORT") == "5432"

    async def test_get_or_throw_missing_key(self, namespace):
        with pytest.raises(ConfigKeyNotFound, match='"MISSING" not found in namespace "app"') as exc_info:
            await namespace.get_or_throw("MISSING")

        assert exc_info.value.key == "MISSING"
        assert exc_info.value.namespace == "app"

    async def test_get_or_throw_empty_string_is_present(self):
        ns = ConfigNamespace(MockConfigBackend({"FLAG": ""}), "store")
        assert await ns.get_or_throw("FLAG") == ""

    async def test_get_all_returns_snapshot(self, namespace):
        assert await namespace.get_all() == {"DB_HOST": "localhost", "DB_PORT": "5432"}

    async def test_get_all_returns_copy(self, namespace):
        snapshot = await namespace.get_all()
        snapshot["DB_HOST"] = "changed"
        assert await namespace.get("DB_HOST") == "localhost"

    async def test_parse_with_schema(self, namespace):
        class Schema:
            def parse(self, data):
                return {"host": data["DB_HOST"], "port": int(data["DB_PORT"])}

        assert await namespace.parse(Schema()) == {"host": "localhost", "port": 5432}

    async def test_parse_propagates_validation_errors(self, namespace):
        class Failing:
            def parse(self, data):
                raise ValueError("Validation failed")

        with pytest.raises(ValueError, match="Validation failed"):
            await namespace.parse(Failing())

    def test_name_defaults_to_store_id(self, db_backend):
        ns = ConfigNamespace(db_backend, "arn:secret")
        assert ns.name == "arn:secret"
        assert ns.store_id == "arn:secret"
        assert ns.backend is db_backend


class TestLazyFetch:
    """Tests for the first, blocking fetch."""

    async def test_fetches_lazily(self, db_backend):
        ns = ConfigNamespace(db_backend, "test-store")
        assert db_backend.call_count == 0

        await ns.get("DB_HOST")

        assert db_backend.calls == ["test-store"]

    async def test_caches_forever_without_interval(self, db_backend, clock):
        ns = ConfigNamespace(db_backend, "test-store", None, clock=clock)

        assert await ns.get("DB_HOST") == "localhost"
        clock.advance_ms(10_000_000)
        assert await ns.get("DB_HOST") == "localhost"

        assert db_backend.call_count == 1

    async def test_repeated_gets_within_interval_fetch_once(self, db_backend, clock):
        ns = ConfigNamespace(db_backend, "test-store", 30_000, clock=clock)

        for _ in range(5):
            await ns.get("DB_HOST")
            clock.advance_ms(1_000)

        assert db_backend.call_count == 1
        assert not ns.refresh_in_flight

    async def test_concurrent_first_calls_share_one_fetch(self):
        backend = MockConfigBackend({"KEY": "v"}, latency_ms=20)
        ns = ConfigNamespace(backend, "store")

        results = await asyncio.gather(*(ns.get("KEY") for _ in range(10)))

        assert results == ["v"] * 10
        assert backend.call_count == 1

    async def test_initial_failure_propagates(self):
        backend = MockConfigBackend(network_error("store"))
        ns = ConfigNamespace(backend, "store")

        with pytest.raises(BackendError, match="Network error"):
            await ns.get("KEY")
        assert ns.last_fetched_at is None
        assert not ns.refresh_in_flight

    async def test_initial_failure_reaches_every_waiter(self):
        backend = MockConfigBackend(network_error("store"), latency_ms=10)
        ns = ConfigNamespace(backend, "store")

        results = await asyncio.gather(ns.get("A"), ns.get("B"), return_exceptions=True)

        assert all(isinstance(r, BackendError) for r in results)
        assert backend.call_count == 1

    async def test_retries_after_initial_failure(self):
        backend = MockConfigBackend(network_error("store"), {"KEY": "v"})
        ns = ConfigNamespace(backend, "store")

        with pytest.raises(BackendError):
            await ns.get("KEY")
        assert await ns.get("KEY") == "v"
        assert backend.call_count == 2

    async def test_cancelled_caller_does_not_cancel_shared_fetch(self):
        backend = MockConfigBackend({"KEY": "v"}, latency_ms=20)
        ns = ConfigNamespace(backend, "store")

        first = asyncio.create_task(ns.get("KEY"))
        second = asyncio.create_task(ns.get("KEY"))
        await asyncio.sleep(0)
        first.cancel()

        assert await second == "v"
        assert first.cancelled()
        assert backend.call_count == 1


class TestBackgroundRefresh:
    """Tests for stale-while-revalidate."""

    async def test_serves_stale_then_fresh(self):
        backend = MockConfigBackend({"KEY": "old"}, {"KEY": "new"})
        ns = ConfigNamespace(backend, "store", 0)

        assert await ns.get("KEY") == "old"

        # Stale: returns the old value and schedules a refresh
        assert await ns.get("KEY") == "old"
        assert ns.refresh_in_flight

        await ns.wait_for_refresh()
        assert await ns.get("KEY") == "new"

    async def test_stale_triggers_second_fetch(self, db_backend):
        ns = ConfigNamespace(db_backend, "test-store", 0)

        await ns.get("DB_HOST")
        assert db_backend.call_count == 1

        await ns.get("DB_HOST")
        await ns.wait_for_refresh()
        assert db_backend.call_count == 2

    async def test_not_stale_before_interval(self, db_backend, clock):
        ns = ConfigNamespace(db_backend, "test-store", 30_000, clock=clock)

        await ns.get("DB_HOST")
        clock.advance_ms(29_999)
        await ns.get("DB_HOST")

        assert not ns.refresh_in_flight
        assert db_backend.call_count == 1

    async def test_stale_at_interval(self, db_backend, clock):
        ns = ConfigNamespace(db_backend, "test-store", 30_000, clock=clock)

        await ns.get("DB_HOST")
        clock.advance_ms(30_000)
        assert ns.is_stale()
        await ns.get("DB_HOST")

        assert ns.refresh_in_flight
        await ns.wait_for_refresh()
        assert db_backend.call_count == 2

    async def test_one_refresh_per_stale_window(self):
        backend = MockConfigBackend({"KEY": "old"}, {"KEY": "new"}, gate_after_first=True)
        ns = ConfigNamespace(backend, "store", 0)
        await ns.get("KEY")

        # Many concurrent readers while the refresh is blocked
        results = await asyncio.gather(*(ns.get("KEY") for _ in range(20)))
        await asyncio.sleep(0)
        more = await asyncio.gather(*(ns.get("KEY") for _ in range(20)))

        assert set(results) | set(more) == {"old"}
        assert backend.call_count == 2
        assert backend.max_in_flight == 1

        backend.release()
        await ns.wait_for_refresh()
        assert await ns.get("KEY") == "new"

    async def test_refresh_updates_last_fetched_at(self, clock):
        backend = MockConfigBackend({"KEY": "old"}, {"KEY": "new"})
        ns = ConfigNamespace(backend, "store", 1_000, clock=clock)

        await ns.get("KEY")
        first_fetch = ns.last_fetched_at
        clock.advance_ms(1_500)
        await ns.get("KEY")
        await ns.wait_for_refresh()

        assert ns.last_fetched_at == first_fetch + 1.5
        assert not ns.is_stale()

    async def test_keeps_serving_stale_when_refresh_fails(self, clock):
        backend = MockConfigBackend({"KEY": "original"}, network_error("store"))
        ns = ConfigNamespace(backend, "store", 0, clock=clock)

        assert await ns.get("KEY") == "original"
        fetched_at = ns.last_fetched_at

        # Refresh fails silently
        assert await ns.get("KEY") == "original"
        await ns.wait_for_refresh()

        assert await ns.get("KEY") == "original"
        assert await ns.get_all() == {"KEY": "original"}
        assert ns.last_fetched_at == fetched_at

    async def test_recovers_after_failed_refresh(self):
        backend = MockConfigBackend({"KEY": "original"}, network_error("store"))
        ns = ConfigNamespace(backend, "store", 0)

        await ns.get("KEY")
        await ns.get("KEY")
        await ns.wait_for_refresh()

        backend.set_response({"KEY": "recovered"})
        assert await ns.get("KEY") == "original"
        await ns.wait_for_refresh()
        assert await ns.get("KEY") == "recovered"

    async def test_refresh_error_handler_called(self):
        error = network_error("store")
        backend = MockConfigBackend({"KEY": "original"}, error)
        seen = []
        ns = ConfigNamespace(backend, "store", 0, on_refresh_error=lambda n, e: seen.append((n, e)))

        await ns.get("KEY")
        await ns.get("KEY")
        await ns.wait_for_refresh()

        assert seen == [(ns, error)]

    async def test_failing_error_handler_is_absorbed(self):
        def handler(namespace, exc):
            raise RuntimeError("handler broke")

        backend = MockConfigBackend({"KEY": "original"}, network_error("store"))
        ns = ConfigNamespace(backend, "store", 0, on_refresh_error=handler)

        await ns.get("KEY")
        await ns.get("KEY")
        await ns.wait_for_refresh()

        assert await ns.get("KEY") == "original"

    async def test_unexpected_refresh_error_absorbed(self):
        backend = MockConfigBackend({"KEY": "original"}, RuntimeError("boom"))
        ns = ConfigNamespace(backend, "store", 0)

        await ns.get("KEY")
        await ns.get("KEY")
        await ns.wait_for_refresh()

        assert await ns.get("KEY") == "original"

    async def test_cleared_script_serves_empty_snapshot(self):
        backend = MockConfigBackend({"KEY": "original"})
        ns = ConfigNamespace(backend, "store", 0)

        await ns.get("KEY")
        backend.set_response()
        await ns.get("KEY")
        await ns.wait_for_refresh()

        assert await ns.get_all() == {}

    async def test_wait_for_refresh_without_fetch(self, db_backend):
        ns = ConfigNamespace(db_backend, "store", 0)
        await ns.wait_for_refresh()
        assert db_backend.call_count == 0
