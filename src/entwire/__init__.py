"""Entwire: typed entity declarations and autowired component graphs.

Entwire lets an application declare its entities (records with fields,
relationships and validation rules) in a small DSL, and its components
(factories with dependencies) with decorators that are discovered by scanning
the project. Both end up as declarative graphs that a lifecycle manager
initialises in dependency order.

Key Features:
    - Entity DSL with forward and cyclic references between entities
    - Copy-on-write entity registry with strict, per-field validation
    - Column and value extraction for storage adapters
    - Component discovery by scanning project modules, without manual wiring
    - Parent slots aggregating several child components
    - Dependency errors reported in one place, when the system is initialised

Basic Usage:
    >>> from entwire.entity import create_entity, EntityRegistry
    >>>
    >>> registry = EntityRegistry()
    >>> user = create_entity("shop/user", ["user",
    ...     ["id", {"primary-key?": True}, "uuid"],
    ...     ["name", ("string", {"max": 250})]], registry)
    >>> user.columns()
    ['id', 'name']

    >>> from entwire.builders import make_system
    >>>
    >>> system = make_system("app.components")
    >>> system.halt()

The package consists of several modules:
    - entity: Entity DSL, registry and handles
    - autowire: Module scanning, component collection and graph building
    - lifecycle: Reference lifecycle manager for declarative graphs
    - builders: High-level system construction
    - repo: Abstract storage surface for entities
    - domain: Core domain models (keys, references, component definitions)
    - errors: Framework-specific exceptions
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
