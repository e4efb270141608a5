"""Budget allocation solvers.

Provides the MIP and frontier implementations of one-option-per-program
selection, shared validation helpers, and the ``AllocationSolver`` protocol
that all solvers satisfy.

The ``allocate`` function validates input, delegates to a solver, and turns
the solver's result into an :class:`~subsidy_allocation.models.Allocation`,
raising :class:`~subsidy_allocation.exceptions.InfeasibleError` when no
optimal selection was found.
"""

import logging
from collections.abc import Iterable

from subsidy_allocation.exceptions import InfeasibleError
from subsidy_allocation.models import Allocation, Program
from subsidy_allocation.solver._common import (
    canonical_programs,
    check_minimum_spend,
    empty_solver_result,
    extract_selection,
    validate_budget,
)
from subsidy_allocation.solver._types import AllocationSolver, SolverResult
from subsidy_allocation.solver.frontier import FrontierSolver
from subsidy_allocation.solver.mip import MultipleChoiceSolver

logger = logging.getLogger(__name__)

__all__ = [
    "AllocationSolver",
    "FrontierSolver",
    "MultipleChoiceSolver",
    "SolverResult",
    "allocate",
    "canonical_programs",
    "check_minimum_spend",
    "empty_solver_result",
    "extract_selection",
    "validate_budget",
]


def allocate(
    programs: Iterable[Program],
    budget: float,
    solver: AllocationSolver | None = None,
) -> Allocation:
    """Choose exactly one option per program to maximize benefit within budget.

    Ties in total benefit go to the cheaper selection; remaining ties go to
    the earliest tiers, taking programs in name order.

    Parameters
    ----------
    programs : Iterable[Program]
        Programs to fund; names must be unique.
    budget : float
        Upper bound on total cost, in minor currency units.
    solver : AllocationSolver, optional
        Solver to use. Defaults to :class:`MultipleChoiceSolver`.

    Returns
    -------
    Allocation

    Raises
    ------
    InvalidInputError
        If the budget is negative or the program collection is malformed.
    InfeasibleError
        If no selection fits within the budget or the solver did not reach
        an optimal solution.
    """
    budget = validate_budget(budget)
    ordered = canonical_programs(programs)
    check_minimum_spend(ordered, budget)

    solver = solver or MultipleChoiceSolver()
    result = solver(ordered, budget)
    status = result["status"]
    if status != "Optimal":
        logger.warning("Solver returned non-optimal status: %s", status)
        raise InfeasibleError(f"No optimal allocation within budget {budget} (status: {status}).", status=status)

    by_name = {p.name: p for p in ordered}
    selection = {}
    for name, label in result["selection"].items():
        selection[name] = next(o for o in by_name[name].options if o.label == label)
    if set(selection) != set(by_name):
        raise InfeasibleError("Solver did not select an option for every program.", status="Incomplete")

    logger.info(
        "Allocation complete: rule=%s, cost=%d, benefit=%.2f, budget=%s",
        result["rule"],
        result["total_cost"],
        result["total_benefit"],
        budget,
    )
    return Allocation(
        budget=budget,
        selection=selection,
        total_cost=sum(o.cost for o in selection.values()),
        total_benefit=sum(o.benefit for o in selection.values()),
        solver=result["rule"],
        detail=result["detail"],
    )
