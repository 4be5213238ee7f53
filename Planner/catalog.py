"""Catalog objects read by the planner core and their milestone ranks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

UINT64_MASK = (1 << 64) - 1
# Order key for absent objects: after every milestoned object
LAST_MILESTONE_KEY = UINT64_MASK


@dataclass(eq=False)
class CatalogObject:
    """
    Base for everything the planner orders.

    Identity is the catalog ``id``. Instances hash by identity so they can
    key favourites tables the same way the catalog hands them out.
    """
    id: int
    name: str
    cost: float = 0.0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id}, {self.name!r})"


@dataclass(eq=False, repr=False)
class Goods(CatalogObject):
    fuel_value: float = 0.0  # MJ per unit, 0 = not a fuel


@dataclass(eq=False, repr=False)
class Entity(CatalogObject):
    crafting_speed: float = 1.0


@dataclass
class Ingredient:
    goods: Goods
    amount: float


@dataclass
class Product:
    goods: Goods
    amount: float
    probability: float = 1.0

    @property
    def average(self) -> float:
        return self.amount * self.probability


@dataclass(eq=False, repr=False)
class Recipe(CatalogObject):
    ingredients: List[Ingredient] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    crafters: List[Entity] = field(default_factory=list)

    def get_production(self, goods: Goods) -> float:
        """Average amount of ``goods`` produced per run."""
        return sum(p.average for p in self.products if p.goods is goods)

    def get_consumption(self, goods: Goods) -> float:
        """Amount of ``goods`` consumed per run."""
        return sum(i.amount for i in self.ingredients if i.goods is goods)


@dataclass
class Milestones:
    """
    Unlock state populated while game data loads.

    ``milestone_result`` maps object id to its milestone bitmask value;
    ``locked_mask`` selects the milestones the player has not reached yet.
    The core treats both as read-only.
    """
    milestone_result: Dict[int, int] = field(default_factory=dict)
    locked_mask: int = UINT64_MASK

    def rank_of(self, object_id: int) -> int:
        """
        Milestone order key for an object id, smaller = unlocked earlier.

        Raises KeyError for ids that were never assigned a milestone value.
        """
        return ((self.milestone_result[object_id] - 1) & UINT64_MASK) & self.locked_mask

    def order_key(self, obj: Optional[CatalogObject]) -> int:
        if obj is None:
            return LAST_MILESTONE_KEY
        return self.rank_of(obj.id)

    def is_accessible(self, obj: CatalogObject) -> bool:
        return self.milestone_result.get(obj.id, 0) != 0
