"""ALLOCATE component: subsidy budget allocation over an option table."""

import logging
from typing import Any, Protocol

from subsidy_allocation.exceptions import InvalidInputError
from subsidy_allocation.models import Allocation, Option, Program
from subsidy_allocation.solver import allocate
from subsidy_allocation.solver._types import AllocationSolver
from subsidy_allocation.units import KG_PER_TONNE, MINOR_PER_MAJOR, kg_to_tonnes, to_major_units, to_minor_units

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("program", "option", "cost", "benefit")

_FIELD_MAP_IN: dict[str, str] = {
    "program_name": "program",
    "option_name": "option",
    "tier": "option",
}


class PipelineComponent(Protocol):
    """Structural interface for pipeline stage components."""

    def execute(self, event: dict) -> dict:
        """Process event and return result."""
        ...


def _to_canonical_row(row: dict[str, Any]) -> dict[str, Any]:
    """Map an option-table row to canonical field names.

    Parameters
    ----------
    row : dict[str, Any]
        Row with table field names.

    Returns
    -------
    dict[str, Any]
        Row with canonical field names.

    Raises
    ------
    InvalidInputError
        If a required field is missing after mapping.
    """
    canonical = {_FIELD_MAP_IN.get(key, key): value for key, value in row.items()}
    missing = [f for f in REQUIRED_FIELDS if f not in canonical]
    if missing:
        raise InvalidInputError(f"Option row is missing fields: {', '.join(missing)}.", field=missing[0])
    return canonical


def programs_from_rows(
    rows: list[dict[str, Any]],
    cost_scale: int = MINOR_PER_MAJOR,
    benefit_scale: int = KG_PER_TONNE,
) -> list[Program]:
    """Group option rows into programs, converting to internal units.

    Options keep the order in which their rows appear; that order decides
    ties between otherwise equivalent tiers.

    Parameters
    ----------
    rows : list[dict[str, Any]]
        Rows with ``program``, ``option``, ``cost`` (major currency units) and
        ``benefit`` (tonnes CO2e).
    cost_scale : int
        Minor currency units per major unit.
    benefit_scale : int
        Kilograms per reported benefit unit.

    Returns
    -------
    list[Program]
    """
    grouped: dict[str, list[Option]] = {}
    for row in rows:
        row = _to_canonical_row(row)
        try:
            cost = to_minor_units(row["cost"], cost_scale)
            benefit = float(row["benefit"]) * benefit_scale
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise InvalidInputError(f"Option {row['option']!r} has a non-numeric cost or benefit.") from exc
        program = str(row["program"])
        grouped.setdefault(program, []).append(Option(program, str(row["option"]), cost, benefit))
    return [Program(name, tuple(options)) for name, options in grouped.items()]


class AllocateComponent(PipelineComponent):
    """Allocate a subsidy budget across programs given as table rows.

    Handles field mapping and unit conversion, then delegates selection to
    the configured solver.

    Parameters
    ----------
    solver : AllocationSolver, optional
        Solver to use. Defaults to :class:`MultipleChoiceSolver`.
    cost_scale : int
        Minor currency units per major unit used in the table.
    benefit_scale : int
        Kilograms CO2e per benefit unit used in the table.
    """

    def __init__(
        self,
        solver: AllocationSolver | None = None,
        cost_scale: int = MINOR_PER_MAJOR,
        benefit_scale: int = KG_PER_TONNE,
    ) -> None:
        self._solver = solver
        self.cost_scale = cost_scale
        self.benefit_scale = benefit_scale

    def execute(self, event: dict) -> dict:
        """Run allocation and return a serialized result.

        Parameters
        ----------
        event : dict
            Must contain ``options`` (list of row dicts) and ``budget``
            (major currency units).

        Returns
        -------
        dict
            ``budget``, ``selected_options``, ``costs``, ``benefits``,
            ``total_cost``, ``total_benefit``, ``budget_used_pct`` and
            ``solver_detail``, in table units.

        Raises
        ------
        InvalidInputError
            If ``options`` or ``budget`` is missing or malformed.
        """
        missing = [key for key in ("options", "budget") if key not in event]
        if missing:
            raise InvalidInputError(f"Event is missing keys: {', '.join(missing)}.", field=missing[0])
        programs = programs_from_rows(event["options"], self.cost_scale, self.benefit_scale)
        try:
            budget = to_minor_units(event["budget"], self.cost_scale)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise InvalidInputError("Budget must be a number.", field="budget") from exc

        allocation = allocate(programs, budget, self._solver)
        logger.info(
            "Allocated %d of %d budget across %d programs",
            allocation.total_cost,
            budget,
            len(allocation.selection),
        )
        return self._serialize(allocation)

    def _serialize(self, allocation: Allocation) -> dict:
        """Convert an allocation back to table units."""
        return {
            "budget": to_major_units(allocation.budget, self.cost_scale),
            "selected_options": {name: o.label for name, o in allocation.selection.items()},
            "costs": {name: to_major_units(o.cost, self.cost_scale) for name, o in allocation.selection.items()},
            "benefits": {
                name: kg_to_tonnes(o.benefit, self.benefit_scale) for name, o in allocation.selection.items()
            },
            "total_cost": to_major_units(allocation.total_cost, self.cost_scale),
            "total_benefit": kg_to_tonnes(allocation.total_benefit, self.benefit_scale),
            "budget_used_pct": allocation.budget_used_pct,
            "solver_detail": {"rule": allocation.solver, "detail": allocation.detail},
        }
