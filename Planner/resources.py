"""
Resource path utilities for frozen (PyInstaller) and development modes.

Bundled files such as the default planner configuration live next to the
package sources in development and inside the extraction directory when
the planner ships as a standalone executable.
"""
from __future__ import annotations

import sys
from pathlib import Path


def get_resource_path(relative_path: str) -> Path:
    """
    Get absolute path to a bundled resource.

    Parameters
    ----------
    relative_path : str
        Path relative to project root (e.g., "Planner/DefaultPlannerConfig.yaml")

    Returns
    -------
    Path
        Absolute path to the resource

    Examples
    --------
    >>> config_path = get_resource_path("Planner/DefaultPlannerConfig.yaml")
    """
    if is_frozen():
        # sys._MEIPASS is the temp folder PyInstaller extracts into
        base_path = Path(sys._MEIPASS)  # type: ignore[attr-defined]
    else:
        # This file is in Planner/, so parent.parent is project root
        base_path = Path(__file__).resolve().parent.parent
    return base_path / relative_path


def is_frozen() -> bool:
    """Return True when running as a packaged executable."""
    return getattr(sys, 'frozen', False)
