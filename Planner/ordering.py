"""
Orderings used to pick default recipes, fuels and crafters.

Candidates are ranked by milestone first (things unlocked earlier win),
then by a per-ordering metric such as cost. A favourites layer on top lets
the objects a user keeps choosing outrank that default order.

Comparators return a negative number when ``x`` should come first, zero on
a tie and a positive number when ``y`` should come first. They are callable,
so ``sorted(items, key=functools.cmp_to_key(comparator))`` works directly.
"""
from __future__ import annotations

from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Optional,
    Protocol,
    TypeVar,
)

from .catalog import CatalogObject, Goods, Milestones, Recipe

T = TypeVar("T")
ObjT = TypeVar("ObjT", bound=CatalogObject)


class Comparer(Protocol[T]):
    """Anything exposing a three-way ``compare``."""

    def compare(self, x: T, y: T) -> int:
        ...


def compare_values(a: Any, b: Any) -> int:
    """Three-way comparison of two naturally ordered values."""
    return (a > b) - (a < b)


class ObjectComparator(Generic[ObjT]):
    """
    Milestone-first ordering with a caller supplied tie-break.

    Parameters
    ----------
    milestones : Milestones
        Unlock state used to rank objects. ``None`` operands sort last.
    similar_comparison : callable
        Three-way comparison applied when both milestone keys are equal.
        Never called with ``None``.
    """

    def __init__(
        self,
        milestones: Milestones,
        similar_comparison: Callable[[ObjT, ObjT], int],
    ):
        self.milestones = milestones
        self.similar_comparison = similar_comparison

    def compare(self, x: Optional[ObjT], y: Optional[ObjT]) -> int:
        msx = self.milestones.order_key(x)
        msy = self.milestones.order_key(y)
        if msx != msy:
            return compare_values(msx, msy)
        if x is None or y is None:
            return compare_values(x is None, y is None)
        return self.similar_comparison(x, y)

    __call__ = compare


class FavouritesComparator(Generic[T]):
    """
    Usage-biased ordering over a base comparator.

    Every ``record_use`` bumps an object; objects with more bumps sort
    first regardless of the base order, which only breaks ties between
    equally used objects. The bump table lives as long as this instance
    and is not synchronised.
    """

    def __init__(self, base: Comparer[T]):
        self.base = base
        self._bumps: Dict[T, int] = {}

    def record_use(self, x: T) -> int:
        """Bump ``x`` once and return its new count."""
        count = self._bumps.get(x, 0) + 1
        self._bumps[x] = count
        return count

    def bump_count(self, x: T) -> int:
        return self._bumps.get(x, 0)

    def compare(self, x: T, y: T) -> int:
        ix = self._bumps.get(x, 0)
        iy = self._bumps.get(y, 0)
        if ix == iy:
            return self.base.compare(x, y)
        return compare_values(iy, ix)

    __call__ = compare


class _NaturalOrder:
    def compare(self, x: Any, y: Any) -> int:
        return compare_values(x, y)


NATURAL_ORDER = _NaturalOrder()


def auto_select(
    items: Iterable[T],
    comparer: Optional[Comparer[T]] = None,
    default: Optional[T] = None,
) -> Optional[T]:
    """
    Return the first-ranked item under ``comparer``.

    Ties keep the earliest item. Without a comparer the items' natural
    ordering is used.

    Note that an empty ``items`` is not an error: ``default`` (``None``
    unless given) comes back instead, so callers that need a candidate
    must check for it themselves.
    """
    if comparer is None:
        comparer = NATURAL_ORDER
    first = True
    best = default
    for elem in items:
        if first or comparer.compare(best, elem) > 0:
            first = False
            best = elem
    return best


# -----------------------------------------------------------------------------
# Named orderings
# -----------------------------------------------------------------------------

def default_ordering(milestones: Milestones) -> ObjectComparator[CatalogObject]:
    """Cheapest first."""
    return ObjectComparator(milestones, lambda x, y: compare_values(x.cost, y.cost))


def _cost_per_fuel(goods: Goods) -> float:
    if goods.fuel_value <= 0:
        return float("inf")
    return goods.cost / goods.fuel_value


def fuel_ordering(milestones: Milestones) -> ObjectComparator[Goods]:
    """Cheapest energy first."""
    return ObjectComparator(
        milestones,
        lambda x, y: compare_values(_cost_per_fuel(x), _cost_per_fuel(y)),
    )


def recipe_ordering_for(milestones: Milestones, goods: Goods) -> ObjectComparator[Recipe]:
    """Cheapest recipe per unit of ``goods`` produced first."""

    def cost_per_unit(recipe: Recipe) -> float:
        produced = recipe.get_production(goods)
        if produced <= 0:
            return float("inf")
        return recipe.cost / produced

    return ObjectComparator(
        milestones,
        lambda x, y: compare_values(cost_per_unit(x), cost_per_unit(y)),
    )
