"""Shared utilities for allocation solvers.

Contains input validation and canonical ordering, result extraction from
PuLP variables, and the empty (non-optimal) result.
"""

import logging
import math
import numbers
from collections.abc import Iterable

import pulp as lp

from subsidy_allocation.exceptions import InfeasibleError, InvalidInputError
from subsidy_allocation.models import Program
from subsidy_allocation.solver._types import SolverResult

logger = logging.getLogger(__name__)

# Benefit totals closer than this (kg CO2e) are treated as equal. The relative
# term only matters for totals so large that float noise exceeds the absolute one.
BENEFIT_ABS_TOL = 1e-6
BENEFIT_REL_TOL = 1e-12


def benefit_tolerance(benefit: float, abs_tol: float = BENEFIT_ABS_TOL) -> float:
    """Largest difference from ``benefit`` that still counts as a tie."""
    return max(abs_tol, BENEFIT_REL_TOL * abs(benefit))


def benefits_close(a: float, b: float, abs_tol: float = BENEFIT_ABS_TOL) -> bool:
    """Return True if two benefit totals are equal up to float noise."""
    return abs(a - b) <= benefit_tolerance(max(abs(a), abs(b)), abs_tol)


def validate_tolerance(tolerance: float) -> float:
    """Check that a benefit tolerance is a finite, non-negative number."""
    if not math.isfinite(tolerance) or tolerance < 0:
        raise ValueError("tolerance must be finite and non-negative.")
    return tolerance


def validate_budget(budget: float) -> float:
    """Check that the budget is a finite, non-negative real number.

    Raises
    ------
    InvalidInputError
        If the budget is negative, not finite, or not a number.
    """
    if isinstance(budget, bool) or not isinstance(budget, numbers.Real):
        raise InvalidInputError("Budget must be a number.", field="budget")
    if not math.isfinite(budget) or budget < 0:
        raise InvalidInputError("Budget must be finite and non-negative.", field="budget")
    return budget


def canonical_programs(programs: Iterable[Program]) -> list[Program]:
    """Validate the program collection and return it sorted by name.

    Sorting by name makes results independent of the caller's iteration
    order (``programs`` is commonly a set).

    Raises
    ------
    InvalidInputError
        If there are no programs, an element is not a ``Program``, or two
        programs share a name.
    """
    programs = list(programs)
    if not programs:
        raise InvalidInputError("At least one program is required.", field="programs")
    seen: set[str] = set()
    for program in programs:
        if not isinstance(program, Program):
            raise InvalidInputError(f"Expected Program, got {type(program).__name__}.", field="programs")
        if program.name in seen:
            raise InvalidInputError(f"Duplicate program name {program.name!r}.", field="programs")
        seen.add(program.name)
    return sorted(programs, key=lambda p: p.name)


def check_minimum_spend(programs: list[Program], budget: float) -> None:
    """Fail fast when even the cheapest tier of every program exceeds the budget.

    Raises
    ------
    InfeasibleError
    """
    minimum = sum(p.cheapest.cost for p in programs)
    if minimum > budget:
        raise InfeasibleError(
            f"Cheapest selection costs {minimum}, which exceeds the budget of {budget}.",
            status="Infeasible",
        )


def extract_selection(
    x_vars: dict[tuple[int, int], lp.LpVariable],
    programs: list[Program],
) -> tuple[dict[str, str], int, float]:
    """Extract the chosen option per program from a solved BIP.

    Parameters
    ----------
    x_vars : dict[tuple[int, int], LpVariable]
        Binary selection variables keyed by ``(program index, option index)``.
    programs : list[Program]
        Programs in the order used to build ``x_vars``.

    Returns
    -------
    tuple[dict[str, str], int, float]
        ``(selection, total_cost, total_benefit)``.
    """
    selection: dict[str, str] = {}
    total_cost = 0
    total_benefit = 0.0
    for p, program in enumerate(programs):
        for k, option in enumerate(program.options):
            if x_vars[(p, k)].varValue > 0.5:
                selection[program.name] = option.label
                total_cost += option.cost
                total_benefit += option.benefit
    return selection, total_cost, total_benefit


def empty_solver_result(status: str, rule: str) -> SolverResult:
    """Build a ``SolverResult`` with no selection.

    Parameters
    ----------
    status : str
        Descriptive status string.
    rule : str
        Solver identifier.

    Returns
    -------
    SolverResult
    """
    return {
        "status": status,
        "selection": {},
        "total_cost": 0,
        "total_benefit": 0.0,
        "objective_value": None,
        "rule": rule,
        "detail": {},
    }
