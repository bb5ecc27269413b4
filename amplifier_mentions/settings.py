"""Settings for the mention system.

Three-scope settings, later scopes overriding earlier ones:
- User global (~/.amplifier/settings.yaml)
- Project (.amplifier/settings.yaml)
- Local (.amplifier/settings.local.yaml)

Mention settings live under the ``mentions:`` key:

    mentions:
      result_limit: 30
      timeout_ms: 800
      disabled_providers: [tools]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from typing import Literal

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .models import MentionSearchOptions
from .search.cache import RepositoryAwareCache

logger = logging.getLogger(__name__)

SECTION = "mentions"

Scope = Literal["user", "project", "local"]


class MentionSettings(BaseModel):
    """Validated ``mentions:`` section."""

    result_limit: int = Field(default=50, ge=0)
    debounce_ms: int = Field(default=200, ge=0)
    timeout_ms: int = Field(default=500, gt=0)
    use_cache: bool = True
    parallel: bool = True
    cache_max_size: int = Field(default=500, ge=1)
    cache_ttl_seconds: float = Field(default=30.0, gt=0)
    disabled_providers: list[str] = Field(default_factory=list)

    def search_options(self) -> MentionSearchOptions:
        return MentionSearchOptions(
            debounce_ms=self.debounce_ms,
            timeout_ms=self.timeout_ms,
            use_cache=self.use_cache,
            parallel=self.parallel,
            limit=self.result_limit,
        )

    def create_cache(self) -> RepositoryAwareCache:
        return RepositoryAwareCache(max_size=self.cache_max_size, default_ttl=self.cache_ttl_seconds)


class SettingsManager:
    """Reads and writes mention settings across user/project/local scopes."""

    def __init__(self, amplifier_dir: Path | None = None, user_dir: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            amplifier_dir: Base directory for project/local settings.
                          If None, uses .amplifier in current directory.
            user_dir: Base directory for user settings (default ~/.amplifier)
        """
        if amplifier_dir is None:
            amplifier_dir = Path(".amplifier")
        if user_dir is None:
            user_dir = Path.home() / ".amplifier"

        self.user_settings_file = user_dir / "settings.yaml"
        self.project_settings_file = amplifier_dir / "settings.yaml"
        self.local_settings_file = amplifier_dir / "settings.local.yaml"

    def load(self) -> MentionSettings:
        """Merged, validated mention settings.

        An invalid section is logged and replaced by defaults rather than
        breaking completion.
        """
        section = self.get_merged_settings().get(SECTION) or {}
        if not isinstance(section, dict):
            logger.warning(f"Ignoring '{SECTION}' settings: expected a mapping, got {type(section).__name__}")
            return MentionSettings()

        try:
            return MentionSettings.model_validate(section)
        except ValidationError as e:
            logger.warning(f"Invalid '{SECTION}' settings, using defaults: {e}")
            return MentionSettings()

    def set_value(self, key: str, value: Any, scope: Scope = "project") -> None:
        """Write one mention setting into a scope.

        Raises:
            KeyError: If key is not a known setting
            ValidationError: If value is invalid for key
        """
        if key not in MentionSettings.model_fields:
            raise KeyError(f"Unknown mention setting: {key}")
        MentionSettings.model_validate({key: value})

        self._update_settings(self._scope_file(scope), {SECTION: {key: value}})
        logger.info(f"Set {scope} mention setting {key} = {value!r}")

    def get_merged_settings(self) -> dict[str, Any]:
        """Merge user, project and local settings (later overrides earlier)."""
        merged: dict[str, Any] = {}
        for path in (self.user_settings_file, self.project_settings_file, self.local_settings_file):
            settings = self._read_settings(path)
            if settings:
                merged = self._deep_merge(merged, settings)
        return merged

    def _scope_file(self, scope: Scope) -> Path:
        file_map = {
            "user": self.user_settings_file,
            "project": self.project_settings_file,
            "local": self.local_settings_file,
        }
        if scope not in file_map:
            raise ValueError(f"Unknown settings scope: {scope}")
        return file_map[scope]

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Returns:
            Settings dict, or None if the file doesn't exist or can't be read
        """
        if not path.exists():
            return None

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {path}: top level is not a mapping")
            return None
        return data

    def _write_settings(self, path: Path, settings: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, "w") as f:
                yaml.dump(settings, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error(f"Failed to write settings to {path}: {e}")
            raise

    def _update_settings(self, path: Path, updates: dict[str, Any]) -> None:
        existing = self._read_settings(path) or {}
        self._write_settings(path, self._deep_merge(existing, updates))

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        result = base.copy()

        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
