"""Data models for subsidy options, programs, and allocations."""

import math
import numbers
from collections.abc import Iterable
from dataclasses import dataclass, field

from subsidy_allocation.exceptions import InvalidInputError
from subsidy_allocation.units import kg_to_tonnes


@dataclass(frozen=True)
class Option:
    """One discrete subsidy tier of a program.

    Parameters
    ----------
    program : str
        Name of the program this tier belongs to.
    label : str
        Identifier of the tier, unique within its program.
    cost : int
        Subsidy spend in minor currency units.
    benefit : float
        GHG reduction in kilograms CO2-equivalent.

    Raises
    ------
    InvalidInputError
        If a name is empty, cost is negative or not an integer, or benefit
        is negative or not finite.
    """

    program: str
    label: str
    cost: int
    benefit: float

    def __post_init__(self) -> None:
        """Validate names and quantities."""
        if not self.program:
            raise InvalidInputError("Option program name must be non-empty.", field="program")
        if not self.label:
            raise InvalidInputError("Option label must be non-empty.", field="label")
        if isinstance(self.cost, bool) or not isinstance(self.cost, numbers.Integral):
            raise InvalidInputError(
                f"Cost of option {self.label!r} must be an integer amount of minor currency units.",
                field="cost",
            )
        if self.cost < 0:
            raise InvalidInputError(f"Cost of option {self.label!r} must be non-negative.", field="cost")
        if isinstance(self.benefit, bool) or not isinstance(self.benefit, numbers.Real):
            raise InvalidInputError(f"Benefit of option {self.label!r} must be a number.", field="benefit")
        if not math.isfinite(self.benefit) or self.benefit < 0:
            raise InvalidInputError(
                f"Benefit of option {self.label!r} must be finite and non-negative.",
                field="benefit",
            )


@dataclass(frozen=True)
class Program:
    """A subsidy category with an ordered, non-empty menu of tiers.

    Parameters
    ----------
    name : str
        Program name (e.g. ``"Solar"``).
    options : tuple[Option, ...]
        Candidate tiers. Order matters for tie-breaking: earlier tiers win.
    """

    name: str
    options: tuple[Option, ...]

    def __post_init__(self) -> None:
        """Validate that options are non-empty, owned by this program, and uniquely labelled."""
        object.__setattr__(self, "options", tuple(self.options))
        if not self.name:
            raise InvalidInputError("Program name must be non-empty.", field="name")
        if not self.options:
            raise InvalidInputError(f"Program {self.name!r} must offer at least one option.", field="options")
        labels = set()
        for option in self.options:
            if option.program != self.name:
                raise InvalidInputError(
                    f"Option {option.label!r} belongs to {option.program!r}, not {self.name!r}.",
                    field="options",
                )
            if option.label in labels:
                raise InvalidInputError(
                    f"Duplicate option label {option.label!r} in program {self.name!r}.",
                    field="options",
                )
            labels.add(option.label)

    @classmethod
    def from_tiers(cls, name: str, tiers: Iterable[tuple[str, int, float]]) -> "Program":
        """Build a program from ``(label, cost, benefit)`` triples."""
        return cls(name, tuple(Option(name, label, cost, benefit) for label, cost, benefit in tiers))

    @property
    def cheapest(self) -> Option:
        """Lowest-cost tier; the earliest one on ties."""
        return min(self.options, key=lambda o: o.cost)


@dataclass(frozen=True)
class Allocation:
    """One option chosen per program, with aggregate totals.

    Parameters
    ----------
    budget : float
        Budget the allocation was computed for, in minor currency units.
    selection : dict[str, Option]
        Chosen option keyed by program name.
    total_cost : int
        Sum of selected option costs.
    total_benefit : float
        Sum of selected option benefits.
    solver : str
        Identifier of the rule that produced the selection.
    detail : dict
        Solver diagnostics (e.g. number of solves or frontier size). Not part
        of equality, so allocations from different runs compare by outcome.

    Raises
    ------
    ValueError
        If the totals disagree with the selection or exceed the budget. These
        are internal consistency checks on solver output, not input
        validation, so they raise plain ``ValueError`` rather than
        ``InvalidInputError``.
    """

    budget: float
    selection: dict[str, Option]
    total_cost: int
    total_benefit: float
    solver: str = "mip"
    detail: dict = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        """Validate totals against the selection and the budget."""
        for program, option in self.selection.items():
            if option.program != program:
                raise ValueError(f"selection key {program!r} does not match option program {option.program!r}")
        if self.total_cost != sum(o.cost for o in self.selection.values()):
            raise ValueError("total_cost must equal the sum of selected option costs")
        if not math.isclose(self.total_benefit, sum(o.benefit for o in self.selection.values()), abs_tol=1e-9):
            raise ValueError("total_benefit must equal the sum of selected option benefits")
        if self.total_cost > self.budget:
            raise ValueError("total_cost must not exceed budget")

    @property
    def budget_used_pct(self) -> float:
        """Percentage of the budget spent; 0 for a zero budget."""
        if self.budget == 0:
            return 0.0
        return 100.0 * self.total_cost / self.budget

    @property
    def total_benefit_tonnes(self) -> float:
        """Total benefit in metric tonnes CO2e."""
        return kg_to_tonnes(self.total_benefit)

    def spend_share(self, program: str) -> float:
        """Percentage of total spend going to ``program``; 0 if nothing is spent."""
        if self.total_cost == 0:
            return 0.0
        return 100.0 * self.selection[program].cost / self.total_cost
