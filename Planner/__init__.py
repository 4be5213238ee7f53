"""Decision-support core for production chain planning."""
from .config import load_config, save_config, PlannerConfig
from .catalog import CatalogObject, Goods, Entity, Recipe, Ingredient, Product, Milestones
from .magnitude import format_amount, format_percentage, try_parse_amount
from .ordering import (
    ObjectComparator,
    FavouritesComparator,
    auto_select,
    default_ordering,
    fuel_ordering,
    recipe_ordering_for,
)
from .lp_solver import SolveStatus, PulpEngine, SolverRetryPolicy, create_solver
from .production import ProductionPlan, build_production_problem, plan_production
from .session import PlannerSession
from .planner_logging import LogLevel, PlannerLogger, create_logger, create_string_logger

__all__ = [
    "load_config",
    "save_config",
    "PlannerConfig",
    # Catalog
    "CatalogObject",
    "Goods",
    "Entity",
    "Recipe",
    "Ingredient",
    "Product",
    "Milestones",
    # Display
    "format_amount",
    "format_percentage",
    "try_parse_amount",
    # Ordering
    "ObjectComparator",
    "FavouritesComparator",
    "auto_select",
    "default_ordering",
    "fuel_ordering",
    "recipe_ordering_for",
    # Solving
    "SolveStatus",
    "PulpEngine",
    "SolverRetryPolicy",
    "create_solver",
    "ProductionPlan",
    "build_production_problem",
    "plan_production",
    "PlannerSession",
    "LogLevel",
    "PlannerLogger",
    "create_logger",
    "create_string_logger",
]
