from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _running_in_docker() -> bool:
    """Best-effort check for container execution.

    Used only to pick sensible defaults. Environment variables always win.
    """
    return Path("/.dockerenv").exists() or os.environ.get("RUNNING_IN_DOCKER") == "1"


def _default_out_dir() -> str:
    # Logs land next to the backend sources unless OUT_DIR says otherwise.
    if _running_in_docker():
        return "/app/out"
    return str(Path(__file__).resolve().parents[1] / "out")


class Settings(BaseSettings):
    """Validated settings (env-driven) for route search, caching and logging."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    out_dir: str = Field(default_factory=_default_out_dir, alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    route_cache_max_entries: int = Field(default=50, ge=1, alias="ROUTE_CACHE_MAX_ENTRIES")
    # Beyond this many candidate stars the pairwise transit pass gets too slow.
    route_graph_max_stars: int = Field(default=1500, ge=2, alias="ROUTE_GRAPH_MAX_STARS")
    route_search_max_hops: int = Field(default=220, ge=1, alias="ROUTE_SEARCH_MAX_HOPS")
    route_search_deadline_s: float = Field(default=0.0, ge=0.0, alias="ROUTE_SEARCH_DEADLINE_S")
    # Catalogs larger than this pair stars through a KD-tree instead of the full distance matrix.
    route_kdtree_threshold: int = Field(default=200, ge=2, alias="ROUTE_KDTREE_THRESHOLD")

    default_number_paths: int = Field(default=3, ge=1, le=50, alias="DEFAULT_NUMBER_PATHS")
    default_route_color: str = Field(default="#00ffff", alias="DEFAULT_ROUTE_COLOR")
    default_line_width: float = Field(default=0.5, gt=0.0, alias="DEFAULT_LINE_WIDTH")

    @model_validator(mode="after")
    def _normalise(self) -> "Settings":
        self.log_level = str(self.log_level or "INFO").strip().upper()
        color = str(self.default_route_color or "").strip().lower()
        if not color.startswith("#"):
            color = f"#{color}"
        self.default_route_color = color
        return self


settings = Settings()
