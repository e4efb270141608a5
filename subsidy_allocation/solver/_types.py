"""Type definitions for the solver protocol and result contract."""

from typing import Any, Protocol, TypedDict

from subsidy_allocation.models import Program


class SolverResult(TypedDict):
    """Common output contract all solvers must satisfy.

    Parameters
    ----------
    status : str
        Solver termination status (e.g. ``"Optimal"``).
    selection : dict[str, str]
        Chosen option label keyed by program name; empty if non-optimal.
    total_cost : int
        Aggregate cost of the selection.
    total_benefit : float
        Aggregate benefit of the selection.
    objective_value : float | None
        Optimal total benefit, or ``None`` if non-optimal.
    rule : str
        Identifier for the solver (e.g. ``"mip"``).
    detail : dict[str, Any]
        Solver-specific diagnostics, opaque to callers.
    """

    status: str
    selection: dict[str, str]
    total_cost: int
    total_benefit: float
    objective_value: float | None
    rule: str
    detail: dict[str, Any]


class AllocationSolver(Protocol):
    """Protocol for one-option-per-program solvers.

    Implementations receive validated programs in canonical (name) order and
    return a :class:`SolverResult`. They report failure through ``status``
    rather than raising.
    """

    def __call__(self, programs: list[Program], budget: float) -> SolverResult: ...
