"""Load, normalise, and save planner configuration from DefaultPlannerConfig.yaml."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .planner_logging import LogLevel
from .resources import get_resource_path

DEFAULT_CONFIG_PATH = get_resource_path("Planner/DefaultPlannerConfig.yaml")

# Returning an imprecise solution is better than no solution at all
DEFAULT_FEASIBILITY_TOLERANCE = 1e-1
MAX_SOLVE_ATTEMPTS = 3


@dataclass
class SolverSettings:
    feasibility_tolerance: float = DEFAULT_FEASIBILITY_TOLERANCE
    max_attempts: int = MAX_SOLVE_ATTEMPTS
    random_seed: Optional[int] = None  # None = seed the session generator from the OS
    verbose: bool = False  # Show CBC output


@dataclass
class LoggingSettings:
    level: str = "SUMMARY"
    log_file: Optional[Path] = None


@dataclass
class PlannerConfig:
    solver: SolverSettings = field(default_factory=SolverSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def _parse_optional_int(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    return int(raw)


def load_config(path: Optional[Path] = None) -> PlannerConfig:
    """Load and normalise configuration YAML into PlannerConfig dataclass."""
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        return PlannerConfig()

    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    # Solver
    solver_raw = raw.get("solver", {}) or {}
    tolerance = float(solver_raw.get("feasibilityTolerance", DEFAULT_FEASIBILITY_TOLERANCE))
    if tolerance <= 0:
        tolerance = DEFAULT_FEASIBILITY_TOLERANCE
    solver = SolverSettings(
        feasibility_tolerance=tolerance,
        max_attempts=max(1, int(solver_raw.get("maxAttempts", MAX_SOLVE_ATTEMPTS))),
        random_seed=_parse_optional_int(solver_raw.get("randomSeed")),
        verbose=bool(solver_raw.get("verbose", False)),
    )

    # Logging
    logging_raw = raw.get("logging", {}) or {}
    log_file = logging_raw.get("logFile")
    level = str(logging_raw.get("level", "SUMMARY")).upper()
    if level not in LogLevel.__members__:
        level = "SUMMARY"
    logging_settings = LoggingSettings(
        level=level,
        log_file=Path(log_file) if log_file else None,
    )

    return PlannerConfig(solver=solver, logging=logging_settings)


def save_config(config: PlannerConfig, path: Optional[Path] = None) -> None:
    """
    Save PlannerConfig back to YAML file.

    Parameters
    ----------
    config : PlannerConfig
        The configuration to save
    path : Path, optional
        Path to save to. Defaults to DefaultPlannerConfig.yaml
    """
    cfg_path = path or DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    data["solver"] = {
        "feasibilityTolerance": config.solver.feasibility_tolerance,
        "maxAttempts": config.solver.max_attempts,
        "randomSeed": config.solver.random_seed,
        "verbose": config.solver.verbose,
    }
    data["logging"] = {
        "level": config.logging.level,
        "logFile": str(config.logging.log_file) if config.logging.log_file else None,
    }

    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, allow_unicode=True, sort_keys=False)
