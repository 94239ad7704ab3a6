"""Enumerate the modules that belong to the project.

Modules are found by walking the configured project directories on disk, so
nothing is imported while scanning. Vendored and installed code is skipped.
"""

import logging
from pathlib import Path
from types import ModuleType
from typing import Any, Iterator, Optional

from entwire.config import EntwireSettings, get_settings
from entwire.errors import UnsupportedScanInputError

__all__ = ["OMITTED", "find_project_modules"]

logger = logging.getLogger(__name__)


class _Omitted:
    def __repr__(self) -> str:
        return "<omitted>"


OMITTED: Any = _Omitted()
"""Default root, meaning the whole project. Distinct from ``None``, which scans nothing."""


def find_project_modules(root: Any = OMITTED, settings: Optional[EntwireSettings] = None) -> list[str]:
    """List project modules under ``root``, sorted by name.

    Args:
        root: A dotted module name, a module object, ``None`` or omitted.
            Omitted scans the whole project, ``None`` scans nothing.
        settings: Overrides the settings from :func:`~entwire.config.get_settings`.

    Returns:
        Dotted names of ``root`` and every module beneath it.

    Raises:
        UnsupportedScanInputError: If ``root`` has any other type, or is a string that
            is not a dotted module name, and strict scanning is enabled. With strict
            scanning disabled the result is empty instead.
    """
    settings = settings or get_settings()

    if root is OMITTED:
        prefix = None
    elif root is None:
        return []
    elif isinstance(root, str) and _is_dotted_name(root):
        prefix = root
    elif isinstance(root, ModuleType):
        prefix = root.__name__
    elif settings.strict_scan:
        raise UnsupportedScanInputError(root)
    else:
        logger.warning("Ignoring unsupported scan root %r", root)
        return []

    modules = sorted(set(_project_modules(settings)))
    if prefix is not None:
        modules = [module for module in modules if module == prefix or module.startswith(prefix + ".")]

    logger.debug("Found %d project modules under %s", len(modules), prefix or "<project>")
    return modules


def _is_dotted_name(value: str) -> bool:
    return all(part.isidentifier() for part in value.split("."))


def _project_modules(settings: EntwireSettings) -> Iterator[str]:
    for base in settings.project_paths:
        base = Path(base)
        if base.is_dir():
            yield from _walk(base, (), settings.excluded_dirs)


def _walk(directory: Path, parts: tuple[str, ...], excluded: frozenset[str]) -> Iterator[str]:
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            if not _is_excluded(entry, excluded):
                yield from _walk(entry, parts + (entry.name,), excluded)
        elif entry.suffix == ".py" and entry.stem.isidentifier():
            if entry.stem != "__init__":
                yield ".".join(parts + (entry.stem,))
            elif parts:
                yield ".".join(parts)


def _is_excluded(directory: Path, excluded: frozenset[str]) -> bool:
    return (
        not directory.name.isidentifier()
        or directory.name in excluded
        or (directory / "pyvenv.cfg").exists()
    )
