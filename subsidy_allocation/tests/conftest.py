"""Shared fixtures for subsidy allocation tests."""

import pytest

from subsidy_allocation.adapter import programs_from_rows
from subsidy_allocation.models import Program
from subsidy_allocation.solver import FrontierSolver, MultipleChoiceSolver


@pytest.fixture()
def example_programs():
    """Two mid-size programs with two tiers each."""
    return [
        Program.from_tiers("HeatMid", [("heat_high", 100000, 500.0), ("heat_low", 50000, 300.0)]),
        Program.from_tiers("SolarMid", [("solar_high", 80000, 400.0), ("solar_low", 30000, 150.0)]),
    ]


@pytest.fixture()
def subsidy_programs():
    """Four programs, each with an explicit opt-out tier. Costs in cents, benefits in kg CO2e."""
    return [
        Program.from_tiers(
            "HeatPump", [("none", 0, 0.0), ("rebate_2k", 200_000, 1800.0), ("rebate_5k", 500_000, 3900.0)]
        ),
        Program.from_tiers(
            "Solar", [("none", 0, 0.0), ("rebate_1_5k", 150_000, 900.0), ("rebate_4k", 400_000, 2100.0)]
        ),
        Program.from_tiers(
            "Weatherization", [("none", 0, 0.0), ("rebate_1k", 100_000, 700.0), ("rebate_2_5k", 250_000, 1500.0)]
        ),
        Program.from_tiers("EV", [("none", 0, 0.0), ("rebate_3k", 300_000, 1200.0), ("rebate_7_5k", 750_000, 2600.0)]),
    ]


@pytest.fixture()
def example_rows():
    """Option table rows in dollars and tonnes CO2e."""
    return [
        {"program": "HeatMid", "option": "heat_high", "cost": 100000, "benefit": 500},
        {"program": "HeatMid", "option": "heat_low", "cost": 50000, "benefit": 300},
        {"program": "SolarMid", "option": "solar_high", "cost": 80000, "benefit": 400},
        {"program": "SolarMid", "option": "solar_low", "cost": 30000, "benefit": 150},
    ]


@pytest.fixture(params=[MultipleChoiceSolver, FrontierSolver], ids=["mip", "frontier"])
def solver(request):
    """Each available solver."""
    return request.param()


@pytest.fixture()
def kg_scale_programs():
    """Programs built from dollar/tonne rows, so benefits are non-round kg values up to ~1e6."""
    tiers = {
        "DistrictHeat": [("none", 0, 0.0), ("full", 250_000, 1000.0001), ("partial", 249_999.99, 999.9996)],
        "EV": [("none", 0, 0.0), ("rebate_3k", 3000, 1.2), ("rebate_7_5k", 7500, 2.6)],
        "HeatPump": [("none", 0, 0.0), ("rebate_2k", 2000, 1.837), ("rebate_5k", 5000, 3.912)],
        "Solar": [("none", 0, 0.0), ("rebate_1_5k", 1500, 0.913), ("rebate_4k", 4000, 2.1047)],
        "Weatherization": [("none", 0, 0.0), ("rebate_1k", 1000, 0.7071), ("rebate_2_5k", 2500, 1.5013)],
    }
    rows = [
        {"program": program, "option": label, "cost": cost, "benefit": benefit}
        for program, options in tiers.items()
        for label, cost, benefit in options
    ]
    return programs_from_rows(rows)
