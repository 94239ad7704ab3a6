"""The capability surface storage adapters implement for entities."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Optional

from entwire.entity import Entity

__all__ = ["Repo"]


class Repo(ABC):
    """Persistence operations over entities.

    Implementations validate with :meth:`Entity.validate` and map records to rows
    with :meth:`Entity.columns` and :meth:`Entity.values`. A record that is not
    found is not an error: :meth:`find` returns None.
    """

    @abstractmethod
    def save(self, entity: Entity, data: Mapping[str, Any]) -> Any:
        pass

    @abstractmethod
    def update(self, entity: Entity, data: Mapping[str, Any], params: Mapping[str, Any]) -> Any:
        pass

    @abstractmethod
    def delete(self, entity: Entity, params: Mapping[str, Any]) -> Any:
        pass

    @abstractmethod
    def find(self, entity: Entity, params: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    def find_all(self, entity: Entity, params: Optional[Mapping[str, Any]] = None) -> list[dict[str, Any]]:
        pass
