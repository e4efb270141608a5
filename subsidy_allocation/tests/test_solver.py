"""Unit tests for the budget allocator and its solvers."""

import itertools
import logging
import math

import pulp as lp
import pytest

from subsidy_allocation.adapter import programs_from_rows
from subsidy_allocation.exceptions import InfeasibleError, InvalidInputError
from subsidy_allocation.models import Program
from subsidy_allocation.solver import FrontierSolver, MultipleChoiceSolver, allocate, canonical_programs

BUDGETS = [0, 100_000, 250_000, 500_000, 900_000, 1_300_000, 2_000_000]
KG_SCALE_BUDGETS = [0, 500_000, 1_000_000, 2_000_000, 20_000_000, 25_000_000, 26_500_000, 30_000_000]


def best_by_enumeration(programs, budget):
    """Maximum total benefit over all feasible one-per-program combinations."""
    best = None
    for combo in itertools.product(*(p.options for p in programs)):
        if sum(o.cost for o in combo) <= budget:
            benefit = sum(o.benefit for o in combo)
            best = benefit if best is None else max(best, benefit)
    return best


class TestAllocateExample:
    def test_optimal_selection(self, example_programs, solver):
        allocation = allocate(example_programs, 150000, solver)
        assert {name: o.label for name, o in allocation.selection.items()} == {
            "HeatMid": "heat_low",
            "SolarMid": "solar_high",
        }
        assert allocation.total_cost == 130000
        assert allocation.total_benefit == pytest.approx(700.0)

    def test_matches_enumeration(self, example_programs, solver):
        allocation = allocate(example_programs, 150000, solver)
        assert allocation.total_benefit == pytest.approx(best_by_enumeration(example_programs, 150000))

    def test_rule_recorded(self, example_programs):
        assert allocate(example_programs, 150000).solver == "mip"
        assert allocate(example_programs, 150000, FrontierSolver()).solver == "frontier"


class TestAllocateGuarantees:
    @pytest.mark.parametrize("budget", BUDGETS)
    def test_one_option_per_program(self, subsidy_programs, solver, budget):
        allocation = allocate(subsidy_programs, budget, solver)
        assert set(allocation.selection) == {p.name for p in subsidy_programs}
        for program in subsidy_programs:
            assert allocation.selection[program.name] in program.options

    @pytest.mark.parametrize("budget", BUDGETS)
    def test_budget_respected(self, subsidy_programs, solver, budget):
        allocation = allocate(subsidy_programs, budget, solver)
        assert allocation.total_cost <= budget

    @pytest.mark.parametrize("budget", BUDGETS)
    def test_optimal_against_enumeration(self, subsidy_programs, solver, budget):
        allocation = allocate(subsidy_programs, budget, solver)
        assert allocation.total_benefit == pytest.approx(best_by_enumeration(subsidy_programs, budget))

    def test_monotone_in_budget(self, subsidy_programs, solver):
        benefits = [allocate(subsidy_programs, b, solver).total_benefit for b in range(0, 2_000_001, 100_000)]
        assert all(later >= earlier - 1e-9 for earlier, later in zip(benefits, benefits[1:]))

    def test_zero_budget_selects_opt_out(self, subsidy_programs, solver):
        allocation = allocate(subsidy_programs, 0, solver)
        assert all(o.label == "none" for o in allocation.selection.values())
        assert allocation.total_benefit == 0.0

    def test_large_budget_funds_top_tiers(self, subsidy_programs, solver):
        allocation = allocate(subsidy_programs, 10_000_000, solver)
        assert allocation.total_cost == 500_000 + 400_000 + 250_000 + 750_000

    def test_accepts_set_of_programs(self, example_programs, solver):
        from_list = allocate(example_programs, 150000, solver)
        from_set = allocate(set(example_programs), 150000, solver)
        assert from_list == from_set

    def test_forced_tier_without_opt_out(self, solver):
        programs = [Program.from_tiers("EV", [("rebate", 300_000, 1200.0)])]
        allocation = allocate(programs, 300_000, solver)
        assert allocation.selection["EV"].label == "rebate"


class TestDeterminism:
    def test_repeated_calls_identical(self, subsidy_programs, solver):
        r1 = allocate(subsidy_programs, 900_000, solver)
        r2 = allocate(subsidy_programs, 900_000, solver)
        assert r1 == r2

    @pytest.mark.parametrize("budget", BUDGETS)
    def test_solvers_agree(self, subsidy_programs, budget):
        mip = allocate(subsidy_programs, budget, MultipleChoiceSolver())
        frontier = allocate(subsidy_programs, budget, FrontierSolver())
        assert mip.selection == frontier.selection


class TestTieBreaking:
    def test_cheaper_selection_wins(self, solver):
        programs = [Program.from_tiers("Solar", [("premium", 100, 5.0), ("basic", 60, 5.0)])]
        allocation = allocate(programs, 100, solver)
        assert allocation.selection["Solar"].label == "basic"

    def test_earlier_tier_wins_on_identical_options(self, solver):
        programs = [Program.from_tiers("Solar", [("first", 50, 5.0), ("second", 50, 5.0)])]
        allocation = allocate(programs, 100, solver)
        assert allocation.selection["Solar"].label == "first"

    def test_programs_resolved_in_name_order(self, solver):
        programs = [
            Program.from_tiers("Weatherization", [("none", 0, 0.0), ("rebate", 10, 10.0)]),
            Program.from_tiers("HeatPump", [("none", 0, 0.0), ("rebate", 10, 10.0)]),
        ]
        allocation = allocate(programs, 10, solver)
        assert allocation.selection["HeatPump"].label == "none"
        assert allocation.selection["Weatherization"].label == "rebate"


class TestInfeasible:
    def test_budget_below_cheapest_selection(self, example_programs, solver):
        with pytest.raises(InfeasibleError) as excinfo:
            allocate(example_programs, 79_999, solver)
        assert excinfo.value.status == "Infeasible"
        assert excinfo.value.code == "INFEASIBLE"

    def test_cheapest_selection_exactly_fits(self, example_programs, solver):
        allocation = allocate(example_programs, 80_000, solver)
        assert allocation.total_cost == 80_000

    def test_solver_reports_infeasible_status(self, example_programs, solver):
        result = solver(canonical_programs(example_programs), 10_000)
        assert result["status"] != "Optimal"
        assert result["selection"] == {}
        assert result["objective_value"] is None

    def test_non_optimal_status_raises(self, example_programs, caplog):
        def failing_solver(programs, budget):
            return {
                "status": "Not Solved",
                "selection": {},
                "total_cost": 0,
                "total_benefit": 0.0,
                "objective_value": None,
                "rule": "stub",
                "detail": {},
            }

        with caplog.at_level(logging.WARNING, logger="subsidy_allocation.solver"):
            with pytest.raises(InfeasibleError) as excinfo:
                allocate(example_programs, 150000, failing_solver)
        assert excinfo.value.status == "Not Solved"
        assert "non-optimal status" in caplog.text.lower()


class TestInvalidInput:
    def test_negative_budget(self, example_programs):
        with pytest.raises(InvalidInputError, match="non-negative"):
            allocate(example_programs, -1)

    def test_nan_budget(self, example_programs):
        with pytest.raises(InvalidInputError):
            allocate(example_programs, math.nan)

    def test_non_numeric_budget(self, example_programs):
        with pytest.raises(InvalidInputError, match="number"):
            allocate(example_programs, "150000")

    def test_no_programs(self):
        with pytest.raises(InvalidInputError, match="At least one program"):
            allocate([], 100)

    def test_duplicate_program_names(self, example_programs):
        with pytest.raises(InvalidInputError, match="Duplicate program"):
            allocate(example_programs + [example_programs[0]], 150000)

    def test_non_program_element(self):
        with pytest.raises(InvalidInputError, match="Expected Program"):
            allocate([("HeatMid", [])], 100)

    def test_invalid_solver_settings(self):
        with pytest.raises(ValueError, match="time_limit"):
            MultipleChoiceSolver(time_limit=0)
        with pytest.raises(ValueError, match="tolerance"):
            MultipleChoiceSolver(tolerance=-1.0)
        with pytest.raises(ValueError, match="tolerance"):
            FrontierSolver(tolerance=math.inf)


class TestFloatingPointBenefits:
    def test_slightly_smaller_cheaper_option_loses(self, solver):
        programs = [Program.from_tiers("DistrictHeat", [("big", 100, 1_000_000.0), ("near", 50, 999_999.5)])]
        allocation = allocate(programs, 100, solver)
        assert allocation.selection["DistrictHeat"].label == "big"
        assert allocation.total_benefit == 1_000_000.0

    def test_rounding_tie_falls_to_earliest_tiers(self, solver):
        # 0.1 + 0.2 sums to 0.30000000000000004, which must still tie with 0.3.
        programs = [
            Program.from_tiers("A", [("a0", 1, 0.3), ("a1", 0, 0.1)]),
            Program.from_tiers("B", [("b0", 0, 0.0), ("b1", 1, 0.2)]),
        ]
        allocation = allocate(programs, 1, solver)
        assert {name: o.label for name, o in allocation.selection.items()} == {"A": "a0", "B": "b0"}

    def test_rounding_tie_from_tonne_rows(self, solver):
        rows = [
            {"program": "A", "option": "a0", "cost": 1, "benefit": 0.3},
            {"program": "A", "option": "a1", "cost": 0, "benefit": 0.1},
            {"program": "B", "option": "b0", "cost": 0, "benefit": 0.0},
            {"program": "B", "option": "b1", "cost": 1, "benefit": 0.2},
        ]
        allocation = allocate(programs_from_rows(rows), 100, solver)
        assert {name: o.label for name, o in allocation.selection.items()} == {"A": "a0", "B": "b0"}

    @pytest.mark.parametrize("budget", KG_SCALE_BUDGETS)
    def test_kg_scale_optimal_against_enumeration(self, kg_scale_programs, solver, budget):
        allocation = allocate(kg_scale_programs, budget, solver)
        expected = best_by_enumeration(kg_scale_programs, budget)
        assert allocation.total_benefit == pytest.approx(expected, rel=0, abs=1e-6)

    @pytest.mark.parametrize("budget", KG_SCALE_BUDGETS)
    def test_kg_scale_solvers_agree(self, kg_scale_programs, budget):
        mip = allocate(kg_scale_programs, budget, MultipleChoiceSolver())
        frontier = allocate(kg_scale_programs, budget, FrontierSolver())
        assert mip.selection == frontier.selection

    @pytest.mark.parametrize("budget", [25_000_000, 30_000_000])
    def test_kg_scale_prefers_full_district_heat(self, kg_scale_programs, solver, budget):
        allocation = allocate(kg_scale_programs, budget, solver)
        assert allocation.selection["DistrictHeat"].label == "full"


class TestSolverFailures:
    def test_solver_error_becomes_infeasible(self, example_programs, monkeypatch, caplog):
        def crash(self, prob, stage):
            raise lp.PulpSolverError("cbc crashed")

        monkeypatch.setattr(MultipleChoiceSolver, "_solve", crash)
        with caplog.at_level(logging.ERROR, logger="subsidy_allocation.solver.mip"):
            with pytest.raises(InfeasibleError) as excinfo:
                allocate(example_programs, 150000)
        assert excinfo.value.status == "Error solving problem"
        assert "error solving allocation problem" in caplog.text.lower()
        assert "cbc crashed" in caplog.text

    def test_unproven_solution_is_not_solved(self, example_programs, monkeypatch, caplog):
        def stop_at_time_limit(self, solver=None, **kwargs):
            self.status = lp.LpStatusOptimal
            self.sol_status = lp.LpSolutionIntegerFeasible
            return self.status

        monkeypatch.setattr(lp.LpProblem, "solve", stop_at_time_limit)
        with caplog.at_level(logging.WARNING, logger="subsidy_allocation.solver.mip"):
            with pytest.raises(InfeasibleError) as excinfo:
                allocate(example_programs, 150000, MultipleChoiceSolver(time_limit=1))
        assert excinfo.value.status == "Not Solved"
        assert "benefit stage returned status not solved" in caplog.text.lower()
