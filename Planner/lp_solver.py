"""LP engine adapter and the reseed-and-retry solve policy."""
from __future__ import annotations

import random
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

import pulp  # type: ignore

from .config import DEFAULT_FEASIBILITY_TOLERANCE, MAX_SOLVE_ATTEMPTS
from .planner_logging import LogLevel, PlannerLogger, create_logger

# Upper bound (exclusive) for reseeds, matches a signed 32-bit seed
MAX_RANDOM_SEED = 2**31 - 1


class SolveStatus(str, Enum):
    OPTIMAL = "Optimal"
    FEASIBLE = "Feasible"
    INFEASIBLE = "Infeasible"
    UNBOUNDED = "Unbounded"
    ABNORMAL = "Abnormal"  # numerical trouble short of a proof either way
    NOT_SOLVED = "Not Solved"

    @property
    def has_solution(self) -> bool:
        return self in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE)


class LpEngine(Protocol):
    """What the retry policy needs from an LP backend."""

    def solve(self) -> SolveStatus:
        ...

    def set_solver_parameter(self, name: str, value: Any) -> None:
        ...


# Solver parameter name -> CBC command line options it sets
CBC_OPTION_NAMES: Dict[str, tuple[str, ...]] = {
    "solution_feasibility_tolerance": ("primalTolerance",),
    "random_seed": ("randomSeed", "randomCbcSeed"),
}


def status_from_pulp(status: int, sol_status: Optional[int] = None) -> SolveStatus:
    """Map PuLP problem/solution status codes onto SolveStatus."""
    if status == pulp.LpStatusOptimal:
        if sol_status == pulp.LpSolutionIntegerFeasible:
            return SolveStatus.FEASIBLE
        return SolveStatus.OPTIMAL
    if status == pulp.LpStatusInfeasible:
        return SolveStatus.INFEASIBLE
    if status == pulp.LpStatusUnbounded:
        return SolveStatus.UNBOUNDED
    if status == pulp.LpStatusNotSolved:
        return SolveStatus.NOT_SOLVED
    return SolveStatus.ABNORMAL


class PulpEngine:
    """
    LpEngine over a PuLP problem solved with the bundled CBC.

    Solver parameters are kept by name and turned into CBC options on every
    solve, so a reseed takes effect on the next attempt.
    """
    backend = "PULP_CBC_CMD"

    def __init__(
        self,
        problem: pulp.LpProblem,
        msg: bool = False,
        logger: Optional[PlannerLogger] = None,
    ):
        self.problem = problem
        self.msg = msg
        self.logger = logger or create_logger(level=LogLevel.SILENT)
        self.parameters: Dict[str, Any] = {}

    def set_solver_parameter(self, name: str, value: Any) -> None:
        if name not in CBC_OPTION_NAMES:
            raise ValueError(f"Unknown solver parameter: {name}")
        self.parameters[name] = value

    def cbc_options(self) -> List[str]:
        return [
            f"{option} {value}"
            for name, value in self.parameters.items()
            for option in CBC_OPTION_NAMES[name]
        ]

    def solve(self) -> SolveStatus:
        command = pulp.PULP_CBC_CMD(msg=self.msg, options=self.cbc_options())
        try:
            self.problem.solve(command)
        except pulp.PulpSolverError as e:
            self.logger.log_solver_error(e)
            return SolveStatus.ABNORMAL
        return status_from_pulp(self.problem.status, self.problem.sol_status)


def create_solver(
    problem: pulp.LpProblem,
    feasibility_tolerance: float = DEFAULT_FEASIBILITY_TOLERANCE,
    msg: bool = False,
    logger: Optional[PlannerLogger] = None,
) -> PulpEngine:
    """
    Wrap ``problem`` in an engine with a relaxed feasibility tolerance.

    An approximate plan is more useful than none, and planner figures are
    displayed with a handful of significant digits anyway.
    """
    if feasibility_tolerance <= 0:
        raise ValueError("feasibility_tolerance must be positive")
    engine = PulpEngine(problem, msg=msg, logger=logger)
    engine.set_solver_parameter("solution_feasibility_tolerance", feasibility_tolerance)
    engine.logger.log_solver_created(engine.backend, feasibility_tolerance)
    return engine


class SolverRetryPolicy:
    """
    Solve with a fresh random seed whenever the engine reports ABNORMAL.

    Any other status is final and returned straight away. When every
    attempt is abnormal the ABNORMAL status is returned, not raised.
    The random generator is owned by the caller's session and is not
    synchronised.

    Parameters
    ----------
    rng : random.Random
        Source of reseeds.
    max_attempts : int
        Total solves per call, including the first.
    logger : PlannerLogger, optional
        Receives one entry per attempt with its wall-clock duration.
    """

    def __init__(
        self,
        rng: random.Random,
        max_attempts: int = MAX_SOLVE_ATTEMPTS,
        logger: Optional[PlannerLogger] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.rng = rng
        self.max_attempts = max_attempts
        self.logger = logger or create_logger(level=LogLevel.SILENT)
        self.last_attempts = 0

    def solve(self, engine: LpEngine) -> SolveStatus:
        for attempt in range(1, self.max_attempts + 1):
            start_time = time.perf_counter()
            status = engine.solve()
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self.last_attempts = attempt
            self.logger.log_attempt(attempt, self.max_attempts, status.value, elapsed_ms)

            if status is not SolveStatus.ABNORMAL:
                return status
            if attempt < self.max_attempts:
                seed = self.rng.randrange(MAX_RANDOM_SEED)
                engine.set_solver_parameter("random_seed", seed)
                self.logger.log_reseed(seed)

        self.logger.log_retries_exhausted(self.max_attempts)
        return SolveStatus.ABNORMAL
