"""Budget sweeps and tabular reports of allocations.

Runs one allocation per budget level and flattens the results into a pandas
DataFrame with one row per selected option per budget, ready to be written as
CSV.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from subsidy_allocation.adapter import programs_from_rows
from subsidy_allocation.exceptions import InfeasibleError
from subsidy_allocation.models import Allocation, Program
from subsidy_allocation.solver import allocate
from subsidy_allocation.solver._types import AllocationSolver
from subsidy_allocation.units import KG_PER_TONNE, MINOR_PER_MAJOR, kg_to_tonnes, to_major_units

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["budget", "program", "option", "cost", "benefit", "pct_of_spend"]


def options_from_frame(
    frame: pd.DataFrame,
    cost_scale: int = MINOR_PER_MAJOR,
    benefit_scale: int = KG_PER_TONNE,
) -> list[Program]:
    """Build programs from a DataFrame of options.

    Parameters
    ----------
    frame : pd.DataFrame
        One row per option with columns ``program``, ``option``, ``cost``
        (major currency units) and ``benefit`` (tonnes CO2e).
    cost_scale : int
        Minor currency units per major unit.
    benefit_scale : int
        Kilograms per benefit unit.

    Returns
    -------
    list[Program]
    """
    return programs_from_rows(frame.to_dict(orient="records"), cost_scale, benefit_scale)


def sweep_budgets(
    programs: Iterable[Program],
    budgets: Iterable[float],
    solver: AllocationSolver | None = None,
    skip_infeasible: bool = True,
) -> list[Allocation]:
    """Allocate the same programs under each budget in turn.

    Parameters
    ----------
    programs : Iterable[Program]
        Programs to fund.
    budgets : Iterable[float]
        Budget levels in minor currency units.
    solver : AllocationSolver, optional
        Solver to use for every run.
    skip_infeasible : bool
        If True, budgets with no feasible selection are logged and left out
        of the result; otherwise the ``InfeasibleError`` propagates.

    Returns
    -------
    list[Allocation]
        One allocation per feasible budget, in the order given.
    """
    programs = list(programs)
    allocations = []
    for budget in budgets:
        try:
            allocations.append(allocate(programs, budget, solver))
        except InfeasibleError as exc:
            if not skip_infeasible:
                raise
            logger.warning("Skipping budget %s: %s", budget, exc)
    logger.info("Budget sweep complete: %d allocations", len(allocations))
    return allocations


def build_report(
    allocations: Iterable[Allocation],
    cost_scale: int = MINOR_PER_MAJOR,
    benefit_scale: int = KG_PER_TONNE,
) -> pd.DataFrame:
    """Flatten allocations into one row per selected option per budget.

    Parameters
    ----------
    allocations : Iterable[Allocation]
        Results of a budget sweep.
    cost_scale : int
        Minor currency units per major unit for ``budget`` and ``cost``.
    benefit_scale : int
        Kilograms per reported ``benefit`` unit.

    Returns
    -------
    pd.DataFrame
        Columns ``budget``, ``program``, ``option``, ``cost``, ``benefit``,
        ``pct_of_spend``.
    """
    records = [
        {
            "budget": to_major_units(allocation.budget, cost_scale),
            "program": name,
            "option": option.label,
            "cost": to_major_units(option.cost, cost_scale),
            "benefit": kg_to_tonnes(option.benefit, benefit_scale),
            "pct_of_spend": allocation.spend_share(name),
        }
        for allocation in allocations
        for name, option in allocation.selection.items()
    ]
    return pd.DataFrame.from_records(records, columns=REPORT_COLUMNS)


def write_report(
    allocations: Iterable[Allocation],
    path: str | Path,
    cost_scale: int = MINOR_PER_MAJOR,
    benefit_scale: int = KG_PER_TONNE,
) -> Path:
    """Write the allocation report as CSV and return its path."""
    path = Path(path)
    report = build_report(allocations, cost_scale, benefit_scale)
    report.to_csv(path, index=False)
    logger.info("Wrote %d report rows to %s", len(report), path)
    return path
