"""Config manager for unified search defaults."""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml

from .saved_searches import (
    DEFAULT_RESULT_LIMIT,
    normalize_result_limit,
    normalize_sort,
    normalize_timeline,
)
from .selection import RECENT_QUERY_LIMIT

logger = logging.getLogger(__name__)

# Environment variables that override file settings
ENV_SORT = "SIGNAL_SEARCH_SORT"
ENV_TIMELINE = "SIGNAL_SEARCH_TIMELINE"
ENV_LIMIT = "SIGNAL_SEARCH_LIMIT"
ENV_VERBATIM = "SIGNAL_SEARCH_VERBATIM"


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


# ---------------------------------------------------------------------------
# SearchConfig dataclass
# ---------------------------------------------------------------------------


@dataclass
class SearchConfig:
    """Default settings applied to every search."""

    default_sort: str = "relevance"
    default_timeline: str = "all"
    result_limit: int = DEFAULT_RESULT_LIMIT
    verbatim: bool = False
    recent_query_limit: int = RECENT_QUERY_LIMIT
    top_results: int = 3

    def to_dict(self) -> dict:
        """Serialize to dict for YAML storage."""
        return {
            "default_sort": self.default_sort,
            "default_timeline": self.default_timeline,
            "result_limit": self.result_limit,
            "verbatim": self.verbatim,
            "recent_query_limit": self.recent_query_limit,
            "top_results": self.top_results,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> SearchConfig:
        """Deserialize from dict, defaulting unknown or mistyped values."""
        defaults = cls()
        return cls(
            default_sort=normalize_sort(data.get("default_sort")),
            default_timeline=normalize_timeline(data.get("default_timeline")),
            result_limit=normalize_result_limit(data.get("result_limit")),
            verbatim=data.get("verbatim") is True,
            recent_query_limit=_positive_int(
                data.get("recent_query_limit"), defaults.recent_query_limit
            ),
            top_results=_positive_int(data.get("top_results"), defaults.top_results),
        )


def apply_env_overrides(
    config: SearchConfig, environ: Mapping[str, str] | None = None
) -> SearchConfig:
    """Return a copy of ``config`` with environment overrides applied.

    Args:
        config: Base configuration.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        New SearchConfig. Invalid override values are ignored.
    """
    env = os.environ if environ is None else environ
    data = config.to_dict()

    if ENV_SORT in env:
        data["default_sort"] = env[ENV_SORT].strip().lower()
    if ENV_TIMELINE in env:
        data["default_timeline"] = env[ENV_TIMELINE].strip().lower()
    if ENV_LIMIT in env:
        try:
            data["result_limit"] = int(env[ENV_LIMIT])
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", ENV_LIMIT, env[ENV_LIMIT])
    if ENV_VERBATIM in env:
        data["verbatim"] = env[ENV_VERBATIM].strip().lower() in ("1", "true", "yes", "on")

    return SearchConfig.from_dict(data)


# ---------------------------------------------------------------------------
# ConfigManager
# ---------------------------------------------------------------------------


class ConfigManager:
    """Loads and saves SearchConfig as YAML.

    Writes are atomic (temp file + rename) to prevent corruption.
    """

    def __init__(self, config_path: Path) -> None:
        """Initialize with path to the YAML file.

        Args:
            config_path: Path to the YAML configuration file.
        """
        self._config_path = config_path

    @property
    def config_path(self) -> Path:
        """Return the configuration file path."""
        return self._config_path

    def load(self) -> SearchConfig:
        """Load the configuration.

        Returns:
            SearchConfig; defaults if the file doesn't exist or is empty.

        Raises:
            ValueError: If the file's top level is not a mapping.
            yaml.YAMLError: If the file is not valid YAML.
        """
        if not self._config_path.exists():
            return SearchConfig()

        with open(self._config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return SearchConfig()
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a mapping: {self._config_path}")

        # Settings live under "search"; a flat file is accepted too
        section = data.get("search", data)
        if not isinstance(section, dict):
            raise ValueError(f"Config 'search' section must be a mapping: {self._config_path}")
        return SearchConfig.from_dict(section)

    def save(self, config: SearchConfig) -> None:
        """Save the configuration.

        Args:
            config: Configuration to persist.
        """
        data = {"search": config.to_dict()}

        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        # Same directory keeps the rename atomic
        fd, temp_path = tempfile.mkstemp(
            dir=self._config_path.parent,
            prefix=".config_",
            suffix=".yaml.tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False)
            os.replace(temp_path, self._config_path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
