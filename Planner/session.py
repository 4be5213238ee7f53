"""Per-session owner of the planner's mutable state."""
from __future__ import annotations

import random
from typing import Dict, Iterable, Optional, Sequence

import pulp  # type: ignore

from .catalog import Entity, Goods, Milestones, Recipe
from .config import PlannerConfig
from .lp_solver import LpEngine, PulpEngine, SolveStatus, SolverRetryPolicy, create_solver
from .ordering import (
    FavouritesComparator,
    ObjectComparator,
    auto_select,
    default_ordering,
    fuel_ordering,
)
from .planner_logging import PlannerLogger, create_logger
from .production import ProductionPlan, default_recipe_for, plan_production


class PlannerSession:
    """
    Holds everything that lives as long as one planning session.

    The random generator feeding solver reseeds and the favourites tables
    for fuels and crafters belong to the session instead of the process.
    Nothing here is synchronised: a caller that solves on a worker thread
    must not touch the same session from another thread meanwhile.

    Parameters
    ----------
    milestones : Milestones
        Unlock state of the loaded catalog.
    config : PlannerConfig, optional
        Solver and logging settings. Defaults to PlannerConfig().
    rng : random.Random, optional
        Reseed source. Defaults to one seeded from ``config.solver.random_seed``.
    logger : PlannerLogger, optional
        Defaults to a logger built from ``config.logging``.
    """

    def __init__(
        self,
        milestones: Milestones,
        config: Optional[PlannerConfig] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[PlannerLogger] = None,
    ):
        self.config = config or PlannerConfig()
        self.milestones = milestones
        self.logger = logger or create_logger(
            level=self.config.logging.level,
            log_file=self.config.logging.log_file,
        )
        self.rng = rng or random.Random(self.config.solver.random_seed)
        self.retry_policy = SolverRetryPolicy(
            self.rng,
            max_attempts=self.config.solver.max_attempts,
            logger=self.logger,
        )

        self.default_ordering: ObjectComparator = default_ordering(milestones)
        self.fuel_ordering: ObjectComparator[Goods] = fuel_ordering(milestones)
        self.favourite_fuel: FavouritesComparator[Goods] = FavouritesComparator(self.fuel_ordering)
        self.favourite_crafter: FavouritesComparator[Entity] = FavouritesComparator(
            self.default_ordering
        )

    def close(self):
        """Release the logger's file sink, if any."""
        self.logger.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # -------------------------------------------------------------------------
    # Solving
    # -------------------------------------------------------------------------

    def create_engine(self, problem: pulp.LpProblem) -> PulpEngine:
        return create_solver(
            problem,
            feasibility_tolerance=self.config.solver.feasibility_tolerance,
            msg=self.config.solver.verbose,
            logger=self.logger,
        )

    def solve(self, engine: LpEngine) -> SolveStatus:
        return self.retry_policy.solve(engine)

    def plan(self, recipes: Sequence[Recipe], demands: Dict[Goods, float]) -> ProductionPlan:
        return plan_production(self, recipes, demands)

    # -------------------------------------------------------------------------
    # Defaults and favourites
    # -------------------------------------------------------------------------

    def choose_fuel(self, candidates: Iterable[Goods]) -> Optional[Goods]:
        """Default fuel among ``candidates``; None when there are none."""
        candidates = list(candidates)
        best = auto_select(candidates, self.favourite_fuel)
        self.logger.log_default_selected("fuel", best.name if best else None, len(candidates))
        return best

    def choose_crafter(self, candidates: Iterable[Entity]) -> Optional[Entity]:
        """Default crafter among ``candidates``; None when there are none."""
        candidates = list(candidates)
        best = auto_select(candidates, self.favourite_crafter)
        self.logger.log_default_selected("crafter", best.name if best else None, len(candidates))
        return best

    def default_recipe_for(self, goods: Goods, recipes: Sequence[Recipe]) -> Optional[Recipe]:
        return default_recipe_for(goods, recipes, self.milestones)

    def record_fuel_choice(self, fuel: Goods) -> None:
        count = self.favourite_fuel.record_use(fuel)
        self.logger.log_favourite_recorded(fuel.name, count)

    def record_crafter_choice(self, crafter: Entity) -> None:
        count = self.favourite_crafter.record_use(crafter)
        self.logger.log_favourite_recorded(crafter.name, count)
