"""
Unit Tests for the Method Memoization Layer

Tests key derivation, hit/miss behaviour, force refresh and invalidation.
"""

from unittest.mock import AsyncMock

import pytest

from rediscache.infrastructure.cache.service_cache import CallOptions, KeyRegistry, ServiceCache


@pytest.fixture
def service_cache(cache_provider, mock_logger):
    return ServiceCache(cache_provider, logger_instance=mock_logger)


@pytest.fixture
def loader():
    return AsyncMock(side_effect=lambda user_id, detail=None: {"id": user_id, "detail": detail})


@pytest.fixture
def user_service(service_cache, loader):
    class UserService:
        @service_cache.cached()
        async def get_user(self, user_id, detail=None):
            return await loader(user_id, detail=detail)

        @service_cache.cached(ttl=60, key="users_by_team")
        async def by_team(self, team):
            return [team]

        @service_cache.cached()
        async def search(self, query):
            return await loader(query)

    return UserService


@pytest.mark.unit
class TestKeyDerivation:
    """Test how cache keys are built."""

    async def test_key_uses_class_and_method(self, user_service, fake_redis):
        await user_service().get_user(42)

        assert list(fake_redis.data) == ["ServiceCache:UserService_get_user:0=42"]

    async def test_keyword_arguments_in_key(self, user_service, fake_redis):
        await user_service().get_user(42, detail="full")

        assert "ServiceCache:UserService_get_user:0=42&detail=full" in fake_redis.data

    async def test_explicit_key_and_ttl(self, user_service, fake_redis):
        await user_service().by_team("core")

        assert "ServiceCache:users_by_team:0=core" in fake_redis.data
        assert fake_redis.commands("set")[-1][3] == 60

    async def test_structurally_equal_arguments_share_key(self, user_service, loader):
        svc = user_service()

        await svc.search({"a": 1})
        await svc.search({"a": 1})

        loader.assert_awaited_once()

    async def test_different_arguments_use_different_keys(self, user_service, loader, fake_redis):
        svc = user_service()

        await svc.search({"a": 1})
        await svc.search({"a": 2})

        assert loader.await_count == 2
        assert len(fake_redis.data) == 2

    async def test_instances_share_cache(self, user_service, loader):
        """Test that self is not part of the key."""
        await user_service().get_user(1)
        await user_service().get_user(1)

        loader.assert_awaited_once()

    async def test_plain_function_uses_module_name(self, service_cache, fake_redis):
        @service_cache.cached()
        async def fetch(item_id):
            return {"item": item_id}

        await fetch(7)

        assert "ServiceCache:test_service_cache_fetch:0=7" in fake_redis.data

    async def test_classmethod(self, service_cache, fake_redis):
        class Catalog:
            @classmethod
            @service_cache.cached()
            async def lookup(cls, sku):
                return {"sku": sku}

        assert await Catalog.lookup("A1") == {"sku": "A1"}
        assert "ServiceCache:Catalog_lookup:0=A1" in fake_redis.data

    async def test_custom_namespace_and_serializer(self, cache_provider, fake_redis):
        memo = ServiceCache(
            cache_provider,
            namespace="Memo",
            serializer=lambda args, kwargs: "-".join(str(arg) for arg in args),
        )

        @memo.cached(key="sum")
        async def add(a, b):
            return a + b

        assert await add(1, 2) == 3
        assert "Memo:sum:1-2" in fake_redis.data

    async def test_namespace_from_settings(self, cache_provider, monkeypatch):
        from rediscache.core.config.settings import reload_settings

        monkeypatch.setenv("CACHE_KEY_NAMESPACE", "App")
        reload_settings()

        async def fn():
            return 1

        assert ServiceCache(cache_provider).base_key_for(fn, "x") == "App:x"

    async def test_sync_function_rejected(self, service_cache):
        with pytest.raises(TypeError):

            @service_cache.cached()
            def not_async():
                return 1


@pytest.mark.unit
class TestMemoization:
    """Test hit/miss and refresh behaviour."""

    async def test_second_call_is_served_from_cache(self, user_service, loader):
        svc = user_service()

        first = await svc.get_user(1)
        second = await svc.get_user(1)

        assert first == second == {"id": 1, "detail": None}
        loader.assert_awaited_once()

    async def test_force_refresh_skips_read_and_writes(self, user_service, loader, cache_provider):
        svc = user_service()
        await svc.get_user(1)
        loader.side_effect = lambda user_id, detail=None: {"id": user_id, "fresh": True}

        result = await svc.get_user(1, cache_options=CallOptions(force_refresh=True))

        assert result == {"id": 1, "fresh": True}
        assert loader.await_count == 2
        assert await cache_provider.get("ServiceCache:UserService_get_user:0=1") == result

    async def test_cache_options_not_part_of_key(self, user_service, fake_redis):
        await user_service().get_user(1, cache_options=CallOptions())

        assert list(fake_redis.data) == ["ServiceCache:UserService_get_user:0=1"]

    @pytest.mark.parametrize("result", [None, 0, "", [], {}])
    async def test_falsy_results_are_not_cached(self, service_cache, fake_redis, result):
        compute = AsyncMock(return_value=result)

        @service_cache.cached()
        async def fetch(x):
            return await compute(x)

        assert await fetch(1) == result
        assert await fetch(1) == result
        assert compute.await_count == 2
        assert fake_redis.commands("set") == []

    async def test_failure_propagates_without_write(self, service_cache, fake_redis):
        @service_cache.cached()
        async def fetch(x):
            raise LookupError("not found")

        with pytest.raises(LookupError):
            await fetch(1)

        assert fake_redis.commands("set") == []


@pytest.mark.unit
class TestClearFor:
    """Test invalidation by method and arguments."""

    async def test_clear_all_results(self, user_service, service_cache, fake_redis):
        svc = user_service()
        await svc.get_user(1)
        await svc.get_user(2)
        await svc.by_team("core")

        removed = await service_cache.clear_for(user_service.get_user)

        assert removed == 2
        assert list(fake_redis.data) == ["ServiceCache:users_by_team:0=core"]

    async def test_clear_by_argument_prefix(self, user_service, service_cache, fake_redis):
        """Test that clearing for 1 removes every key whose arguments start with 1."""
        svc = user_service()
        await svc.get_user(1)
        await svc.get_user(1, detail="full")
        await svc.get_user(2)

        removed = await service_cache.clear_for(user_service.get_user, 1)

        assert removed == 2
        assert list(fake_redis.data) == ["ServiceCache:UserService_get_user:0=2"]

    async def test_clear_by_keyword_argument(self, user_service, service_cache, fake_redis):
        """Test that results of keyword calls are cleared by the same keyword."""
        svc = user_service()
        await svc.get_user(user_id=1)
        await svc.get_user(user_id=2)
        await svc.get_user(1)

        removed = await service_cache.clear_for(user_service.get_user, user_id=1)

        assert removed == 1
        assert sorted(fake_redis.data) == [
            "ServiceCache:UserService_get_user:0=1",
            "ServiceCache:UserService_get_user:user_id=2",
        ]

    async def test_clear_via_bound_method(self, user_service, service_cache, fake_redis):
        svc = user_service()
        await svc.get_user(1)

        assert await service_cache.clear_for(svc.get_user) == 1
        assert fake_redis.data == {}

    async def test_clear_recomputes_next_call(self, user_service, service_cache, loader):
        svc = user_service()
        await svc.get_user(1)

        await service_cache.clear_for(user_service.get_user, 1)
        await svc.get_user(1)

        assert loader.await_count == 2

    async def test_clear_unregistered_function(self, service_cache, fake_redis):
        async def never_cached():
            return 1

        assert await service_cache.clear_for(never_cached) == 0
        assert fake_redis.commands("keys") == []

    async def test_clear_escapes_glob_characters(self, service_cache, fake_redis):
        @service_cache.cached(key="report[v2]")
        async def report(x):
            return {"x": x}

        await fake_redis.set("ServiceCache:reportv:0=1", "other")
        await report(1)

        assert await service_cache.clear_for(report) == 1
        assert list(fake_redis.data) == ["ServiceCache:reportv:0=1"]


@pytest.mark.unit
class TestKeyRegistry:
    def test_lookup_by_function_and_wrapper(self):
        registry = KeyRegistry()

        def fn():
            pass

        def wrapper():
            pass

        registry.register("ServiceCache:x", fn, wrapper)

        assert registry.lookup(fn) == "ServiceCache:x"
        assert registry.lookup(wrapper) == "ServiceCache:x"
        assert len(registry) == 1

    def test_lookup_unknown(self):
        assert KeyRegistry().lookup(print) is None
