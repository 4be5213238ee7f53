"""Tests for the LP engine adapter and the reseed-and-retry policy."""
from __future__ import annotations

import random
from typing import Any, List, Tuple

import pulp  # type: ignore
import pytest

from Planner.lp_solver import (
    MAX_RANDOM_SEED,
    PulpEngine,
    SolveStatus,
    SolverRetryPolicy,
    create_solver,
    status_from_pulp,
)
from Planner.planner_logging import LogLevel, create_string_logger

CBC_AVAILABLE = bool(pulp.PULP_CBC_CMD(msg=False).available())
requires_cbc = pytest.mark.skipif(not CBC_AVAILABLE, reason="CBC solver not available")


class ScriptedEngine:
    """LpEngine stub replaying a fixed list of statuses."""

    def __init__(self, statuses: List[SolveStatus]):
        self.statuses = list(statuses)
        self.solve_calls = 0
        self.parameters: List[Tuple[str, Any]] = []

    def solve(self) -> SolveStatus:
        status = self.statuses[min(self.solve_calls, len(self.statuses) - 1)]
        self.solve_calls += 1
        return status

    def set_solver_parameter(self, name: str, value: Any) -> None:
        self.parameters.append((name, value))


# ---------------------------------------------------------------------------
# Tests: SolverRetryPolicy
# ---------------------------------------------------------------------------

class TestSolverRetryPolicy:
    """Retrying abnormal solves with fresh seeds."""

    def test_recovers_after_two_abnormal_results(self):
        engine = ScriptedEngine([SolveStatus.ABNORMAL, SolveStatus.ABNORMAL, SolveStatus.OPTIMAL])
        policy = SolverRetryPolicy(random.Random(1))

        assert policy.solve(engine) is SolveStatus.OPTIMAL
        assert engine.solve_calls == 3
        assert policy.last_attempts == 3

    def test_gives_up_after_three_attempts(self):
        engine = ScriptedEngine([SolveStatus.ABNORMAL])
        policy = SolverRetryPolicy(random.Random(1))

        assert policy.solve(engine) is SolveStatus.ABNORMAL
        assert engine.solve_calls == 3

    @pytest.mark.parametrize(
        "status",
        [
            SolveStatus.OPTIMAL,
            SolveStatus.FEASIBLE,
            SolveStatus.INFEASIBLE,
            SolveStatus.UNBOUNDED,
            SolveStatus.NOT_SOLVED,
        ],
    )
    def test_non_abnormal_status_returns_immediately(self, status):
        engine = ScriptedEngine([status, SolveStatus.OPTIMAL])
        policy = SolverRetryPolicy(random.Random(1))

        assert policy.solve(engine) is status
        assert engine.solve_calls == 1
        assert engine.parameters == []

    def test_reseeds_from_owned_generator(self):
        engine = ScriptedEngine([SolveStatus.ABNORMAL])
        policy = SolverRetryPolicy(random.Random(42))
        policy.solve(engine)

        reference = random.Random(42)
        expected = [("random_seed", reference.randrange(MAX_RANDOM_SEED)) for _ in range(2)]
        assert engine.parameters == expected

    def test_seeds_in_range(self):
        engine = ScriptedEngine([SolveStatus.ABNORMAL])
        policy = SolverRetryPolicy(random.Random(7), max_attempts=20)
        policy.solve(engine)

        assert engine.solve_calls == 20
        assert all(0 <= seed < MAX_RANDOM_SEED for _, seed in engine.parameters)

    def test_custom_attempt_count(self):
        engine = ScriptedEngine([SolveStatus.ABNORMAL])
        policy = SolverRetryPolicy(random.Random(1), max_attempts=1)

        assert policy.solve(engine) is SolveStatus.ABNORMAL
        assert engine.solve_calls == 1
        assert engine.parameters == []

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            SolverRetryPolicy(random.Random(1), max_attempts=0)

    def test_logs_each_attempt(self):
        logger, buffer = create_string_logger(LogLevel.DETAILED)
        engine = ScriptedEngine([SolveStatus.ABNORMAL])
        SolverRetryPolicy(random.Random(1), logger=logger).solve(engine)

        attempts = [e for e in logger.get_entries_by_category("SOLVER")
                    if e.message.startswith("Solution completed")]
        assert len(attempts) == 3
        assert all(e.data["status"] == "Abnormal" for e in attempts)
        assert len(logger.get_entries_by_category("SEED")) == 2
        assert "still abnormal after 3 attempts" in buffer.getvalue()


# ---------------------------------------------------------------------------
# Tests: PuLP adapter
# ---------------------------------------------------------------------------

class TestStatusMapping:
    """PuLP codes map onto SolveStatus."""

    @pytest.mark.parametrize(
        "status, sol_status, expected",
        [
            (pulp.LpStatusOptimal, pulp.LpSolutionOptimal, SolveStatus.OPTIMAL),
            (pulp.LpStatusOptimal, pulp.LpSolutionIntegerFeasible, SolveStatus.FEASIBLE),
            (pulp.LpStatusInfeasible, pulp.LpSolutionInfeasible, SolveStatus.INFEASIBLE),
            (pulp.LpStatusUnbounded, pulp.LpSolutionUnbounded, SolveStatus.UNBOUNDED),
            (pulp.LpStatusNotSolved, pulp.LpSolutionNoSolutionFound, SolveStatus.NOT_SOLVED),
            (pulp.LpStatusUndefined, pulp.LpSolutionNoSolutionFound, SolveStatus.ABNORMAL),
        ],
    )
    def test_mapping(self, status, sol_status, expected):
        assert status_from_pulp(status, sol_status) is expected

    def test_has_solution(self):
        assert SolveStatus.OPTIMAL.has_solution
        assert SolveStatus.FEASIBLE.has_solution
        assert not SolveStatus.ABNORMAL.has_solution
        assert not SolveStatus.INFEASIBLE.has_solution


class TestPulpEngine:
    """Parameter handling and error reporting."""

    def test_create_solver_relaxes_tolerance(self):
        engine = create_solver(pulp.LpProblem("t", pulp.LpMinimize))
        assert engine.parameters == {"solution_feasibility_tolerance": 0.1}
        assert engine.cbc_options() == ["primalTolerance 0.1"]

    def test_random_seed_sets_both_cbc_seeds(self):
        engine = create_solver(pulp.LpProblem("t", pulp.LpMinimize))
        engine.set_solver_parameter("random_seed", 7)
        assert "randomSeed 7" in engine.cbc_options()
        assert "randomCbcSeed 7" in engine.cbc_options()

    def test_reseed_replaces_previous_seed(self):
        engine = create_solver(pulp.LpProblem("t", pulp.LpMinimize))
        engine.set_solver_parameter("random_seed", 7)
        engine.set_solver_parameter("random_seed", 8)
        assert "randomSeed 7" not in engine.cbc_options()
        assert "randomSeed 8" in engine.cbc_options()

    def test_unknown_parameter_rejected(self):
        engine = PulpEngine(pulp.LpProblem("t", pulp.LpMinimize))
        with pytest.raises(ValueError):
            engine.set_solver_parameter("presolve", "off")

    def test_non_positive_tolerance_rejected(self):
        with pytest.raises(ValueError):
            create_solver(pulp.LpProblem("t", pulp.LpMinimize), feasibility_tolerance=0.0)

    def test_solver_error_reported_as_abnormal(self):
        class BrokenProblem:
            def solve(self, solver):
                raise pulp.PulpSolverError("cbc crashed")

        logger, buffer = create_string_logger(LogLevel.MINIMAL)
        engine = PulpEngine(BrokenProblem(), logger=logger)
        assert engine.solve() is SolveStatus.ABNORMAL
        assert "cbc crashed" in buffer.getvalue()

    def test_creation_logged(self):
        logger, buffer = create_string_logger(LogLevel.DETAILED)
        create_solver(pulp.LpProblem("t", pulp.LpMinimize), logger=logger)
        assert "feasibility tolerance=0.1" in buffer.getvalue()


@requires_cbc
class TestPulpEngineSolve:
    """Real solves through CBC."""

    def test_optimal(self):
        prob = pulp.LpProblem("small", pulp.LpMinimize)
        x = pulp.LpVariable("x", lowBound=0)
        y = pulp.LpVariable("y", lowBound=0)
        prob += x + 2 * y
        prob += x + y >= 2

        engine = create_solver(prob)
        assert SolverRetryPolicy(random.Random(3)).solve(engine) is SolveStatus.OPTIMAL
        assert pulp.value(prob.objective) == pytest.approx(2.0, abs=0.2)

    def test_infeasible(self):
        prob = pulp.LpProblem("impossible", pulp.LpMinimize)
        x = pulp.LpVariable("x", lowBound=0)
        prob += x
        prob += x >= 3
        prob += x <= 1

        engine = create_solver(prob)
        assert SolverRetryPolicy(random.Random(3)).solve(engine) is SolveStatus.INFEASIBLE

    def test_solve_after_reseed(self):
        prob = pulp.LpProblem("seeded", pulp.LpMinimize)
        x = pulp.LpVariable("x", lowBound=0)
        prob += x
        prob += x >= 1

        engine = create_solver(prob)
        engine.set_solver_parameter("random_seed", 12345)
        assert engine.solve() is SolveStatus.OPTIMAL
