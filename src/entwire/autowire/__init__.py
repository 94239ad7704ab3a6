"""Automatic discovery and wiring of components.

Scanning finds the project's modules, collecting picks the definitions marked
with :func:`~entwire.autowire.markers.autowired` out of them, and building turns
those into a declarative graph for the lifecycle manager.
"""

from typing import Any, Optional

from entwire.autowire.collector import collect_autowired, component_dependencies, find_components
from entwire.autowire.graph import ComponentGraph, build_graph
from entwire.autowire.markers import (
    AUTOWIRED_KEY,
    AutowiredValue,
    Inject,
    autowired,
    autowired_value,
    halts,
)
from entwire.autowire.scanner import OMITTED, find_project_modules
from entwire.config import EntwireSettings

__all__ = [
    "AUTOWIRED_KEY",
    "AutowiredValue",
    "ComponentGraph",
    "Inject",
    "OMITTED",
    "autowired",
    "autowired_value",
    "build_config",
    "build_graph",
    "collect_autowired",
    "component_dependencies",
    "find_components",
    "find_project_modules",
    "halts",
]


def build_config(root: Any = OMITTED, settings: Optional[EntwireSettings] = None) -> ComponentGraph:
    """Scan ``root``, collect its autowired definitions and build their graph.

    Args:
        root: Passed to :func:`find_project_modules`.
        settings: Overrides the default settings.

    Returns:
        The :class:`ComponentGraph` to hand to the lifecycle manager.
    """
    return build_graph(find_components(find_project_modules(root, settings)))
