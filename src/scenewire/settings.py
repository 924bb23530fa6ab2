from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FailureLogging(str, Enum):
    """How the container registry reports containers that fail to resolve an instance."""

    EACH = "each"
    """Log every failing container at WARNING."""

    LAST = "last"
    """Log failing containers at DEBUG and only the last error at WARNING when all fail."""

    OFF = "off"
    """Do not log resolution failures."""


class SceneWireSettings(BaseSettings):
    """Runtime configuration read from ``SCENEWIRE_*`` environment variables.

    Examples:
        .. code-block:: shell

            export SCENEWIRE_FAILURE_LOGGING=each
            export SCENEWIRE_SCENE_PATHS='["./scenes", "/usr/share/app/scenes"]'

    """

    model_config = SettingsConfigDict(env_prefix="SCENEWIRE_", extra="ignore")

    failure_logging: FailureLogging = FailureLogging.LAST
    """Reporting policy for failed per-container resolution attempts."""

    scene_paths: list[Path] = Field(default_factory=list)
    """Directories searched by ``Storyboard.named``, in order."""

    scene_suffix: str = ".scene.json"
    """File name suffix appended to scene names by ``Storyboard.named``."""


@lru_cache(maxsize=1)
def get_settings() -> SceneWireSettings:
    """Return the cached process settings; call ``get_settings.cache_clear()`` to reload."""
    return SceneWireSettings()


__all__ = ["FailureLogging", "SceneWireSettings", "get_settings"]
