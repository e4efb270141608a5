"""Budget allocation of clean-energy subsidies to maximize GHG reduction."""

from subsidy_allocation.adapter import AllocateComponent
from subsidy_allocation.exceptions import AllocationError, InfeasibleError, InvalidInputError
from subsidy_allocation.models import Allocation, Option, Program
from subsidy_allocation.report import build_report, options_from_frame, sweep_budgets, write_report
from subsidy_allocation.solver import FrontierSolver, MultipleChoiceSolver, allocate

__all__ = [
    "AllocateComponent",
    "Allocation",
    "AllocationError",
    "FrontierSolver",
    "InfeasibleError",
    "InvalidInputError",
    "MultipleChoiceSolver",
    "Option",
    "Program",
    "allocate",
    "build_report",
    "options_from_frame",
    "sweep_budgets",
    "write_report",
]
