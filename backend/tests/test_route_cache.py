from __future__ import annotations

import threading

from starroute.route_cache import DEFAULT_MAX_ENTRIES, RouteCacheKey, RouteCacheStore
from starroute.route_types import RouteFindingOptions, SearchResult
from starroute.stars import StarNode


def _options(origin: str = "Sol", destination: str = "Sirius", **overrides) -> RouteFindingOptions:
    fields = {
        "origin_star_name": origin,
        "destination_star_name": destination,
        "upper_bound": 5.0,
        "lower_bound": 0.5,
        "number_paths": 3,
    }
    fields.update(overrides)
    return RouteFindingOptions(**fields)


def _key(name: str) -> RouteCacheKey:
    return RouteCacheKey.from_options(_options(destination=name))


def _ok(label: str = "") -> SearchResult:
    return SearchResult.ok([], desired_path=label)


def test_default_cache_capacity() -> None:
    cache = RouteCacheStore()
    assert cache.max_entries == DEFAULT_MAX_ENTRIES
    for idx in range(DEFAULT_MAX_ENTRIES + 5):
        cache.put(_key(f"star-{idx}"), _ok())
    assert len(cache) == DEFAULT_MAX_ENTRIES


def test_capacity_one_keeps_only_latest_entry() -> None:
    cache = RouteCacheStore(max_entries=1)
    cache.put(_key("Alpha"), _ok("alpha"))
    cache.put(_key("Vega"), _ok("vega"))

    assert len(cache) == 1
    assert _key("Alpha") not in cache
    assert cache.get(_key("Vega")).desired_path == "vega"
    assert cache.snapshot()["evictions"] == 1


def test_lru_eviction_honours_recent_get() -> None:
    cache = RouteCacheStore(max_entries=3)
    for name in ("A", "B", "C"):
        cache.put(_key(name), _ok(name))

    # Touching A makes B the least recently used entry.
    assert cache.get(_key("A")) is not None
    cache.put(_key("D"), _ok("D"))

    assert len(cache) == 3
    assert _key("A") in cache
    assert _key("B") not in cache
    assert _key("C") in cache
    assert _key("D") in cache


def test_failed_results_are_never_cached() -> None:
    cache = RouteCacheStore(max_entries=3)
    stored = cache.put(_key("A"), SearchResult.failure("no path exists between Sol and A", reason_code="no_path"))

    assert stored is False
    assert len(cache) == 0


def test_hit_and_miss_counters() -> None:
    cache = RouteCacheStore(max_entries=3)
    assert cache.get(_key("A")) is None
    cache.put(_key("A"), _ok())
    assert cache.get(_key("A")) is not None
    assert cache.get(_key("A")) is not None

    assert cache.hits == 2
    assert cache.misses == 1
    assert cache.statistics() == "RouteCache[size=1, hits=2, misses=1, hitRate=66.7%]"


def test_clear_keeps_statistics_and_reset_keeps_entries() -> None:
    cache = RouteCacheStore(max_entries=3)
    cache.put(_key("A"), _ok())
    cache.get(_key("A"))
    cache.get(_key("B"))

    assert cache.clear() == 1
    assert len(cache) == 0
    assert cache.hits == 1
    assert cache.misses == 1

    cache.put(_key("C"), _ok())
    cache.reset_statistics()
    assert len(cache) == 1
    assert cache.hits == 0
    assert cache.misses == 0
    assert cache.statistics() == "RouteCache[size=1, hits=0, misses=0, hitRate=0.0%]"


def test_cache_key_ignores_set_order_and_presentation() -> None:
    a = RouteCacheKey.from_options(
        _options(star_exclusions=["M", "K"], polity_exclusions=["Terran", "Ktor"], color="#ff0000")
    )
    b = RouteCacheKey.from_options(
        _options(star_exclusions=["K", "M"], polity_exclusions=["Ktor", "Terran"], color="#00ff00", line_width=3.0)
    )

    assert a == b
    assert hash(a) == hash(b)


def test_cache_key_separates_search_relevant_fields() -> None:
    base = RouteCacheKey.from_options(_options())

    assert base != RouteCacheKey.from_options(_options(number_paths=4))
    assert base != RouteCacheKey.from_options(_options(upper_bound=5.5))
    assert base != RouteCacheKey.from_options(_options(star_exclusions=["M"]))
    assert base == RouteCacheKey.from_options(_options(upper_bound=5.001))


def test_cache_key_star_digest_is_order_independent() -> None:
    sol = StarNode(id="1", name="Sol", position=(0.0, 0.0, 0.0))
    vega = StarNode(id="2", name="Vega", position=(1.0, 0.0, 0.0))

    forward = RouteCacheKey.from_options(_options(), [sol, vega])
    backward = RouteCacheKey.from_options(_options(), [vega, None, sol])

    assert forward == backward
    assert forward != RouteCacheKey.from_options(_options(), [sol])


def test_concurrent_get_put_respects_capacity_and_counts() -> None:
    cache = RouteCacheStore(max_entries=3)
    workers = 8
    rounds = 200
    barrier = threading.Barrier(workers)
    oversize: list[int] = []

    def _work(worker: int) -> None:
        barrier.wait()
        for idx in range(rounds):
            key = _key(f"w{worker}-{idx % 5}")
            if cache.get(key) is None:
                cache.put(key, _ok())
            if len(cache) > 3:
                oversize.append(len(cache))

    threads = [threading.Thread(target=_work, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert oversize == []
    snap = cache.snapshot()
    assert snap["size"] <= 3
    assert snap["hits"] + snap["misses"] == workers * rounds
