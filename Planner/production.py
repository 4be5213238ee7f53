"""Cost-minimising production chain LP built from catalog recipes."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import pulp  # type: ignore

from .catalog import Goods, Milestones, Recipe
from .lp_solver import SolveStatus
from .magnitude import format_amount
from .ordering import Comparer, auto_select, recipe_ordering_for
from .planner_logging import LogLevel, PlannerLogger, create_logger

if TYPE_CHECKING:
    from .session import PlannerSession

# Rates below this are solver noise, not a recipe to build
MIN_RECIPE_RATE = 1e-9


@dataclass
class ProductionPlan:
    status: SolveStatus
    recipe_rates: Dict[Recipe, float] = field(default_factory=dict)  # runs per second
    total_cost: float = 0.0

    def formatted_rates(self) -> Dict[str, str]:
        """Recipe name -> display string, for tables and tooltips."""
        return {recipe.name: format_amount(rate) for recipe, rate in self.recipe_rates.items()}


def _touched_goods(recipes: Sequence[Recipe], demands: Dict[Goods, float]) -> List[Goods]:
    seen: Dict[Goods, None] = {}
    for recipe in recipes:
        for product in recipe.products:
            seen[product.goods] = None
        for ingredient in recipe.ingredients:
            seen[ingredient.goods] = None
    for goods in demands:
        seen[goods] = None
    return list(seen)


def build_production_problem(
    recipes: Sequence[Recipe],
    demands: Dict[Goods, float],
    logger: Optional[PlannerLogger] = None,
) -> Tuple[pulp.LpProblem, Dict[Recipe, pulp.LpVariable]]:
    """
    Formulate the chain LP.

    Decision variables: x[r] = runs per second of recipe r.
    Objective: minimise sum(cost[r] * x[r]).
    Constraints:
        - every goods some recipe produces: net production >= demand (0 if none)
        - goods nothing produces are raw inputs and stay unconstrained
    """
    logger = logger or create_logger(level=LogLevel.SILENT)
    prob = pulp.LpProblem("ProductionChain", pulp.LpMinimize)

    x = {
        recipe: pulp.LpVariable(f"recipe_{recipe.id}", lowBound=0, cat=pulp.LpContinuous)
        for recipe in recipes
    }
    prob += pulp.lpSum(recipe.cost * x[recipe] for recipe in recipes), "TotalCost"

    for goods in _touched_goods(recipes, demands):
        producers = [r for r in recipes if r.get_production(goods) > 0]
        demand = demands.get(goods, 0.0)
        if not producers:
            continue
        net = pulp.lpSum(
            (r.get_production(goods) - r.get_consumption(goods)) * x[r]
            for r in recipes
            if r.get_production(goods) or r.get_consumption(goods)
        )
        prob += net >= demand, f"Net_{goods.id}"
        logger.log_demand_constraint(goods.name, demand, len(producers))

    return prob, x


def plan_production(
    session: "PlannerSession",
    recipes: Sequence[Recipe],
    demands: Dict[Goods, float],
) -> ProductionPlan:
    """
    Solve the chain LP through the session's retry policy.

    Only OPTIMAL and FEASIBLE results carry rates; every other status comes
    back with an empty plan for the caller to branch on.
    """
    logger = session.logger
    logger.log_plan_start(len(recipes), len(demands))

    if not recipes:
        logger._log(LogLevel.MINIMAL, "PLAN", "No recipes available - returning empty plan")
        return ProductionPlan(status=SolveStatus.NOT_SOLVED)

    unproducible = [
        goods.name for goods, demand in demands.items()
        if demand > 0 and not any(r.get_production(goods) > 0 for r in recipes)
    ]
    if unproducible:
        logger._log(LogLevel.MINIMAL, "PLAN", f"Nothing produces: {', '.join(unproducible)}")
        return ProductionPlan(status=SolveStatus.INFEASIBLE)

    prob, x = build_production_problem(recipes, demands, logger)
    engine = session.create_engine(prob)
    status = session.solve(engine)

    if not status.has_solution:
        logger.log_plan_summary(status.value, 0.0, 0)
        return ProductionPlan(status=status)

    rates: Dict[Recipe, float] = {}
    for recipe, var in x.items():
        rate = pulp.value(var) or 0.0
        if rate > MIN_RECIPE_RATE:
            rates[recipe] = rate
    total_cost = sum(recipe.cost * rate for recipe, rate in rates.items())

    logger.log_plan_summary(status.value, total_cost, len(rates))
    logger.log_recipe_rates({recipe.name: rate for recipe, rate in rates.items()})
    return ProductionPlan(status=status, recipe_rates=rates, total_cost=total_cost)


def default_recipe_for(
    goods: Goods,
    recipes: Sequence[Recipe],
    milestones: Milestones,
    comparer: Optional[Comparer[Recipe]] = None,
) -> Optional[Recipe]:
    """Pick the default recipe producing ``goods``; None when nothing does."""
    candidates = [r for r in recipes if r.get_production(goods) > 0]
    if comparer is None:
        comparer = recipe_ordering_for(milestones, goods)
    return auto_select(candidates, comparer)
