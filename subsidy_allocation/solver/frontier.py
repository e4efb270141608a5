"""Exact dynamic program over the cost/benefit frontier.

Programs are folded in one at a time. After each program only the partial
selections that are not dominated (no other partial selection is at most as
expensive and at least as beneficial) and that fit within the budget are
kept. This needs no external solver and is exact for any option costs, but
the frontier can grow with the number of distinct reachable totals, so it is
best suited to small menus such as per-program subsidy tiers.

Benefit totals that differ only by float rounding count as equal, using the
same tolerance as :class:`~subsidy_allocation.solver.mip.MultipleChoiceSolver`.
"""

import logging
from collections.abc import Iterable

from subsidy_allocation.models import Program
from subsidy_allocation.solver._common import (
    BENEFIT_ABS_TOL,
    benefits_close,
    empty_solver_result,
    validate_tolerance,
)
from subsidy_allocation.solver._types import SolverResult

logger = logging.getLogger(__name__)

RULE = "frontier"

# (total cost, total benefit, chosen option position per program so far)
_State = tuple[int, float, tuple[int, ...]]


class FrontierSolver:
    """Pareto-frontier dynamic program for one-option-per-program selection.

    Applies the same tie-breaking as :class:`MultipleChoiceSolver`: highest
    benefit, then lowest cost, then earliest tiers in program order.

    Parameters
    ----------
    tolerance : float
        Absolute difference in kg CO2e below which two benefit totals tie.
    """

    def __init__(self, tolerance: float = BENEFIT_ABS_TOL) -> None:
        self.tolerance = validate_tolerance(tolerance)

    def _prefer(self, candidate: _State, incumbent: _State) -> bool:
        """Return True if ``candidate`` beats ``incumbent`` at equal cost."""
        if not benefits_close(candidate[1], incumbent[1], self.tolerance):
            return candidate[1] > incumbent[1]
        return candidate[2] < incumbent[2]

    def _prune(self, states: Iterable[_State]) -> list[_State]:
        """Drop states dominated in (cost, benefit)."""
        frontier: list[_State] = []
        best_benefit = None
        for state in sorted(states, key=lambda s: s[0]):
            if best_benefit is None or (
                state[1] > best_benefit and not benefits_close(state[1], best_benefit, self.tolerance)
            ):
                frontier.append(state)
                best_benefit = state[1]
        return frontier

    def __call__(self, programs: list[Program], budget: float) -> SolverResult:
        """Select one option per program maximizing benefit within ``budget``.

        Parameters
        ----------
        programs : list[Program]
            Validated programs in canonical order.
        budget : float
            Maximum total cost.

        Returns
        -------
        SolverResult
        """
        frontier: list[_State] = [(0, 0.0, ())]
        for program in programs:
            by_cost: dict[int, _State] = {}
            for cost, benefit, positions in frontier:
                for k, option in enumerate(program.options):
                    new_cost = cost + option.cost
                    if new_cost > budget:
                        continue
                    state = (new_cost, benefit + option.benefit, positions + (k,))
                    incumbent = by_cost.get(new_cost)
                    if incumbent is None or self._prefer(state, incumbent):
                        by_cost[new_cost] = state
            if not by_cost:
                logger.warning("No selection through program %s fits within budget %s", program.name, budget)
                return empty_solver_result("Infeasible", RULE)
            frontier = self._prune(by_cost.values())
            logger.debug("Frontier after %s: %d states", program.name, len(frontier))

        best_benefit = max(s[1] for s in frontier)
        ties = [s for s in frontier if benefits_close(s[1], best_benefit, self.tolerance)]
        total_cost, total_benefit, positions = min(ties, key=lambda s: (s[0], s[2]))
        selection = {program.name: program.options[k].label for program, k in zip(programs, positions)}
        return {
            "status": "Optimal",
            "selection": selection,
            "total_cost": total_cost,
            "total_benefit": total_benefit,
            "objective_value": total_benefit,
            "rule": RULE,
            "detail": {"frontier_size": len(frontier)},
        }
