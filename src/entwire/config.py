"""Runtime settings for project scanning."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["EntwireSettings", "get_settings"]


DEFAULT_EXCLUDED_DIRS = frozenset(
    {
        "site-packages",
        "dist-packages",
        "node_modules",
        "__pycache__",
        "venv",
        "env",
        "build",
        "dist",
        "vendor",
        "_vendor",
    }
)


class EntwireSettings(BaseSettings):
    """Settings read from ``ENTWIRE_*`` environment variables.

    Attributes:
        strict_scan: When true, scanning a root that is neither a dotted module name
            nor a module raises. When false, such roots scan to an empty result.
        project_paths: Directories holding the project's own modules.
        excluded_dirs: Directory names that are never descended into.
    """

    model_config = SettingsConfigDict(env_prefix="ENTWIRE_", extra="forbid")

    strict_scan: bool = True
    project_paths: list[Path] = Field(default_factory=lambda: [Path.cwd()])
    excluded_dirs: frozenset[str] = DEFAULT_EXCLUDED_DIRS


@lru_cache(maxsize=1)
def get_settings() -> EntwireSettings:
    return EntwireSettings()
