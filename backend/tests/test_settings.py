from __future__ import annotations

from starroute.settings import Settings


def test_defaults() -> None:
    cfg = Settings(_env_file=None)
    assert cfg.route_cache_max_entries == 50
    assert cfg.route_search_deadline_s == 0.0
    assert cfg.default_number_paths == 3


def test_env_overrides_are_normalised(monkeypatch) -> None:
    monkeypatch.setenv("ROUTE_CACHE_MAX_ENTRIES", "7")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("DEFAULT_ROUTE_COLOR", "FF8800")

    cfg = Settings(_env_file=None)

    assert cfg.route_cache_max_entries == 7
    assert cfg.log_level == "DEBUG"
    assert cfg.default_route_color == "#ff8800"
