"""
Structured logging for the production planner core.

Provides insight into planner behaviour at multiple verbosity levels:
    - MINIMAL: Only final results and errors
    - SUMMARY: Solve attempts and plan outcomes
    - DETAILED: Recipe rate tables, reseeds
    - DEBUG: Default selections and favourite bumps
    - TRACE: Everything including per-demand constraint rows

Usage:
    from Planner.planner_logging import PlannerLogger, LogLevel

    logger = PlannerLogger(level=LogLevel.DETAILED)
    policy = SolverRetryPolicy(random.Random(), logger=logger)
    policy.solve(engine)
    print(logger.to_string())
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple, Union

from .magnitude import format_amount


class LogLevel(IntEnum):
    """Verbosity levels for planner logging."""
    SILENT = 0      # No output at all
    MINIMAL = 10    # Only final results and errors
    SUMMARY = 20    # Solve attempts and plan outcomes
    DETAILED = 30   # Rate tables, reseeds
    DEBUG = 40      # Default selections and favourite bumps
    TRACE = 50      # Per-constraint detail


@dataclass
class LogEntry:
    """A single log entry with metadata."""
    timestamp: datetime
    level: LogLevel
    category: str
    message: str
    data: Optional[Dict[str, Any]] = None

    def format(self, include_timestamp: bool = True, include_level: bool = True) -> str:
        """Format the log entry as a string."""
        parts = []
        if include_timestamp:
            parts.append(f"[{self.timestamp.strftime('%H:%M:%S.%f')[:-3]}]")
        if include_level:
            parts.append(f"[{self.level.name:8}]")
        parts.append(f"[{self.category}]")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class PlannerLogger:
    """
    Structured logger for the planner core.

    Collects log entries at various verbosity levels and can output
    to multiple destinations (console, file, string buffer).

    Attributes
    ----------
    level : LogLevel
        Minimum level to log (entries below this level are ignored)
    output : TextIO | None
        Output stream (defaults to sys.stdout)
    log_to_file : Path | None
        Optional path to also write logs to a file
    entries : list[LogEntry]
        All logged entries (for programmatic access)
    """
    level: LogLevel = LogLevel.SUMMARY
    output: Optional[TextIO] = None
    log_to_file: Optional[Path] = None
    include_timestamp: bool = True
    include_level: bool = True
    entries: List[LogEntry] = field(default_factory=list)
    _file_handle: Optional[TextIO] = field(default=None, repr=False)

    def __post_init__(self):
        if self.output is None:
            self.output = sys.stdout
        if self.log_to_file:
            self._file_handle = open(self.log_to_file, "w", encoding="utf-8")

    def close(self):
        """Close the file handle if opened."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _log(self, level: LogLevel, category: str, message: str,
             data: Optional[Dict[str, Any]] = None) -> None:
        """Internal method to record and output a log entry."""
        if level > self.level:
            return

        entry = LogEntry(
            timestamp=datetime.now(),
            level=level,
            category=category,
            message=message,
            data=data,
        )
        self.entries.append(entry)

        formatted = entry.format(self.include_timestamp, self.include_level)
        if self.output:
            self.output.write(formatted + "\n")
            self.output.flush()
        if self._file_handle:
            self._file_handle.write(formatted + "\n")
            self._file_handle.flush()

    def _log_table(self, level: LogLevel, category: str,
                   headers: List[str], rows: List[List[Any]],
                   title: Optional[str] = None) -> None:
        """Log a formatted table."""
        if level > self.level:
            return

        all_rows = [headers] + rows
        widths = [max(len(str(row[i])) for row in all_rows) for i in range(len(headers))]

        lines = []
        if title:
            lines.append(title)
            lines.append("=" * len(title))

        header_line = " | ".join(str(h).ljust(w) for h, w in zip(headers, widths))
        lines.append(header_line)
        lines.append("-" * len(header_line))

        for row in rows:
            row_line = " | ".join(str(v).ljust(w) for v, w in zip(row, widths))
            lines.append(row_line)

        for line in lines:
            self._log(level, category, line)

    # -------------------------------------------------------------------------
    # Solver Logging
    # -------------------------------------------------------------------------

    def log_solver_created(self, backend: str, feasibility_tolerance: float) -> None:
        """Log construction of an LP engine."""
        self._log(LogLevel.DETAILED, "SOLVER",
                  f"Created {backend} engine (feasibility tolerance={feasibility_tolerance:g})")

    def log_attempt(self, attempt: int, max_attempts: int,
                    status: str, elapsed_ms: float) -> None:
        """Log one solve attempt and its wall-clock duration."""
        self._log(LogLevel.SUMMARY, "SOLVER",
                  f"Solution completed in {elapsed_ms:.0f} ms with result {status} "
                  f"(attempt {attempt}/{max_attempts})",
                  data={"attempt": attempt, "status": status, "elapsed_ms": elapsed_ms})

    def log_reseed(self, seed: int) -> None:
        """Log a solver reseed after an abnormal result."""
        self._log(LogLevel.DETAILED, "SEED", f"Abnormal result, retrying with random_seed={seed}")

    def log_retries_exhausted(self, attempts: int) -> None:
        """Log that every attempt ended abnormally."""
        self._log(LogLevel.MINIMAL, "SOLVER",
                  f"Solver still abnormal after {attempts} attempts")

    def log_solver_error(self, error: Exception) -> None:
        """Log a solver backend failure reported as an abnormal result."""
        self._log(LogLevel.MINIMAL, "SOLVER", f"Solver backend failed: {error}")

    # -------------------------------------------------------------------------
    # Ordering Logging
    # -------------------------------------------------------------------------

    def log_favourite_recorded(self, name: str, count: int) -> None:
        """Log a favourites bump."""
        self._log(LogLevel.DEBUG, "FAVOURITES", f"{name} used {count} time(s)")

    def log_default_selected(self, category: str, name: Optional[str],
                             candidate_count: int) -> None:
        """Log the default chosen from a candidate set."""
        if self.level < LogLevel.DEBUG:
            return
        if name is None:
            self._log(LogLevel.DEBUG, "SELECT", f"No {category} candidates")
        else:
            self._log(LogLevel.DEBUG, "SELECT",
                      f"Default {category}: {name} (from {candidate_count} candidates)")

    # -------------------------------------------------------------------------
    # Plan Logging
    # -------------------------------------------------------------------------

    def log_plan_start(self, recipe_count: int, demand_count: int) -> None:
        """Log the start of a production plan."""
        self._log(LogLevel.SUMMARY, "PLAN",
                  f"Planning {demand_count} demand(s) over {recipe_count} recipe(s)")

    def log_demand_constraint(self, goods_name: str, demand: float, producers: int) -> None:
        """Log one demand row (TRACE level)."""
        self._log(LogLevel.TRACE, "PLAN",
                  f"  {goods_name}: net >= {format_amount(demand)}/s from {producers} recipe(s)")

    def log_plan_summary(self, status: str, total_cost: float, active_recipes: int) -> None:
        """Log plan outcome."""
        self._log(LogLevel.MINIMAL, "PLAN",
                  f"Status: {status}, Recipes: {active_recipes}, "
                  f"Cost: {format_amount(total_cost)}")

    def log_recipe_rates(self, rates: Dict[str, float]) -> None:
        """Log the chosen recipe rates."""
        if self.level < LogLevel.DETAILED or not rates:
            return

        rows = [[name, format_amount(rate)]
                for name, rate in sorted(rates.items(), key=lambda kv: -kv[1])]
        self._log_table(LogLevel.DETAILED, "PLAN",
                        ["Recipe", "Runs/s"], rows, title="Recipe Rates")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def get_all_entries(self) -> List[LogEntry]:
        """Return all logged entries."""
        return self.entries.copy()

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        """Return entries at or below a specific level."""
        return [e for e in self.entries if e.level <= level]

    def get_entries_by_category(self, category: str) -> List[LogEntry]:
        """Return entries matching a category."""
        return [e for e in self.entries if e.category == category]

    def to_string(self, level: Optional[LogLevel] = None) -> str:
        """Format all entries to a string."""
        entries = self.entries if level is None else self.get_entries_by_level(level)
        return "\n".join(e.format(self.include_timestamp, self.include_level)
                         for e in entries)

    def clear(self) -> None:
        """Clear all logged entries."""
        self.entries.clear()


def create_logger(
    level: Union[LogLevel, str, int] = LogLevel.SUMMARY,
    output: Optional[TextIO] = None,
    log_file: Optional[Path] = None,
) -> PlannerLogger:
    """
    Factory function to create a PlannerLogger.

    Parameters
    ----------
    level : LogLevel | str | int
        Verbosity level. Can be LogLevel enum, string name, or integer.
    output : TextIO | None
        Output stream. Defaults to sys.stdout.
    log_file : Path | None
        Optional path to write logs to file.
    """
    if isinstance(level, str):
        level = LogLevel[level.upper()]
    elif isinstance(level, int) and not isinstance(level, LogLevel):
        level = LogLevel(level)

    return PlannerLogger(
        level=level,
        output=output,
        log_to_file=log_file,
    )


def create_string_logger(level: LogLevel = LogLevel.DETAILED) -> Tuple[PlannerLogger, StringIO]:
    """
    Create a logger that writes to a string buffer.

    Useful for testing or capturing logs programmatically.
    """
    buffer = StringIO()
    logger = PlannerLogger(level=level, output=buffer)
    return logger, buffer
