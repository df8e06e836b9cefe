from dataclasses import dataclass, field
from typing import Iterable, List

from gemcascade.components.cell import GemType, ORDINARY_GEM_TYPES
from gemcascade.config import ConfigurationError


@dataclass(slots=True)
class GemTypeRegistry:
    """Empty tag component marking the single entity that stores the gem spawn pool.

    The same entity also carries a GemTypes component.
    """
    pass


@dataclass(slots=True)
class GemTypes:
    """Ordinary gem kinds known to the game and the subset refills may spawn.

    The wildcard kind is never spawnable; it only appears from a 5+ collinear match.
    """
    types: List[GemType] = field(default_factory=lambda: list(ORDINARY_GEM_TYPES))
    spawnable: List[GemType] = field(default_factory=list)

    def __post_init__(self) -> None:
        if GemType.WILDCARD in self.types:
            raise ConfigurationError("The wildcard kind cannot be registered as an ordinary gem type")
        if self.spawnable:
            self.set_spawnable(self.spawnable)
        else:
            self.spawnable = list(self.types)

    def spawnable_types(self) -> List[GemType]:
        return list(self.spawnable)

    def defined_types(self) -> List[GemType]:
        return list(self.types)

    def set_spawnable(self, gem_types: Iterable[GemType]) -> None:
        # Preserve order while dropping duplicates.
        seen: set[GemType] = set()
        filtered: List[GemType] = []
        for gem_type in gem_types:
            if gem_type is GemType.WILDCARD:
                raise ConfigurationError("The wildcard kind is never part of the spawn pool")
            if gem_type in self.types and gem_type not in seen:
                filtered.append(gem_type)
                seen.add(gem_type)
        if not filtered:
            raise ConfigurationError("Spawn pool must contain at least one gem type")
        self.spawnable = filtered
