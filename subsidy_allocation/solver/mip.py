"""Binary integer program for one-tier-per-program subsidy selection.

One binary variable per option, one equality constraint per program (exactly
one tier chosen), and one budget inequality. The objective maximizes total
GHG reduction. Ties are broken by lexicographic re-solves: with benefit held
at its optimum, total cost is minimized; with cost then held, each program in
name order takes its earliest remaining tier.
"""

import logging

import pulp as lp

from subsidy_allocation.models import Program
from subsidy_allocation.solver._common import (
    BENEFIT_ABS_TOL,
    benefit_tolerance,
    benefits_close,
    empty_solver_result,
    extract_selection,
    validate_tolerance,
)
from subsidy_allocation.solver._types import SolverResult

logger = logging.getLogger(__name__)

RULE = "mip"


class MultipleChoiceSolver:
    """Multiple-choice knapsack solved with PuLP and CBC.

    Parameters
    ----------
    time_limit : float, optional
        Wall-clock limit in seconds passed to CBC for each solve. A run that
        stops at the limit without proving optimality is reported as
        non-optimal.
    tolerance : float
        Absolute slack in kg CO2e within which two benefit totals count as a
        tie. Very large totals get a slack proportional to float precision
        instead. A selection more than this below the optimum is never
        returned.
    """

    def __init__(self, time_limit: float | None = None, tolerance: float = BENEFIT_ABS_TOL) -> None:
        if time_limit is not None and time_limit <= 0:
            raise ValueError("time_limit must be positive.")
        self.time_limit = time_limit
        self.tolerance = validate_tolerance(tolerance)

    def _solve(self, prob: lp.LpProblem, stage: str) -> str:
        """Run CBC on ``prob`` and return the PuLP status string."""
        logger.debug("Solving %s stage", stage)
        prob.solve(lp.PULP_CBC_CMD(msg=False, timeLimit=self.time_limit))
        if prob.status == lp.LpStatusOptimal and prob.sol_status != lp.LpSolutionOptimal:
            return "Not Solved"
        return lp.LpStatus[prob.status]

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
        logger.info("Formulating allocation problem: %d programs, budget %s", len(programs), budget)
        prob = lp.LpProblem("Subsidy_Allocation", lp.LpMaximize)
        keys = [(p, k) for p, program in enumerate(programs) for k in range(len(program.options))]
        x = lp.LpVariable.dicts("Select", keys, 0, 1, lp.LpBinary)

        benefit = lp.lpSum(x[(p, k)] * o.benefit for p, prog in enumerate(programs) for k, o in enumerate(prog.options))
        cost = lp.lpSum(x[(p, k)] * o.cost for p, prog in enumerate(programs) for k, o in enumerate(prog.options))

        prob += benefit
        for p, program in enumerate(programs):
            prob += lp.lpSum(x[(p, k)] for k in range(len(program.options))) == 1, f"One_Option_{p}"
        prob += cost <= budget, "Budget"

        try:
            status = self._solve(prob, "benefit")
            if status != "Optimal":
                logger.warning("Benefit stage returned status %s", status)
                return empty_solver_result(status, RULE)
            _, _, best_benefit = extract_selection(x, programs)

            # Hold benefit at its optimum and spend as little as possible.
            prob += benefit >= best_benefit - benefit_tolerance(best_benefit, self.tolerance), "Benefit_Floor"
            prob.sense = lp.LpMinimize
            prob.setObjective(cost)
            status = self._solve(prob, "cost")
            if status != "Optimal":
                logger.warning("Cost stage returned status %s", status)
                return empty_solver_result(status, RULE)
            _, min_cost, _ = extract_selection(x, programs)
            prob += cost <= min_cost, "Cost_Ceiling"

            # Earliest tier per program, in program order.
            for p, program in enumerate(programs):
                if len(program.options) == 1:
                    prob += x[(p, 0)] == 1, f"Fix_{p}"
                    continue
                prob.setObjective(lp.lpSum(k * x[(p, k)] for k in range(len(program.options))))
                status = self._solve(prob, f"tie-break {program.name}")
                if status != "Optimal":
                    logger.warning("Tie-break stage for %s returned status %s", program.name, status)
                    return empty_solver_result(status, RULE)
                chosen = next(k for k in range(len(program.options)) if x[(p, k)].varValue > 0.5)
                prob += x[(p, chosen)] == 1, f"Fix_{p}"
        except lp.PulpSolverError:
            logger.exception("Error solving allocation problem")
            return empty_solver_result("Error solving problem", RULE)

        selection, total_cost, total_benefit = extract_selection(x, programs)
        if not benefits_close(total_benefit, best_benefit, self.tolerance) or total_cost > min_cost:
            logger.warning(
                "Tie-breaking moved away from the optimum: benefit %r (optimum %r), cost %d (minimum %d)",
                total_benefit,
                best_benefit,
                total_cost,
                min_cost,
            )
            return empty_solver_result("Tie-break Lost Optimality", RULE)
        return {
            "status": "Optimal",
            "selection": selection,
            "total_cost": total_cost,
            "total_benefit": total_benefit,
            "objective_value": best_benefit,
            "rule": RULE,
            "detail": {"solves": 2 + sum(1 for prog in programs if len(prog.options) > 1)},
        }
