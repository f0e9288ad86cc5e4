"""Tests for the double integration engine and region statistics."""

import math

import pytest

from surfcalc.exceptions import InvalidInputError
from surfcalc.math_engine.capabilities.integration import (
    IntegrationCapability,
    integrate,
    region_statistics,
)
from surfcalc.math_engine.expression import compile_expression
from surfcalc.math_engine.sampling import Bounds


def constant(value):
    return compile_expression(str(value), 2)


class TestIntegrate:
    """Tests for integrate()."""

    def test_constant_surface(self):
        result = integrate(constant(1), None, Bounds(0, 2, 0, 2), 50)
        assert result.volume == pytest.approx(4.0, rel=0.01)
        assert result.surface_area == pytest.approx(4.0, rel=0.01)
        assert result.mass == pytest.approx(4.0, rel=0.01)
        assert result.center_of_mass == pytest.approx((1.0, 1.0, 1.0))

    def test_moments_of_inertia(self):
        result = integrate(constant(0), None, Bounds(0, 2, 0, 2), 50)
        ix, iy, iz = result.moment_of_inertia
        # Flat plate: Ix = int y^2 dA, Iy = int x^2 dA, Iz = Ix + Iy
        assert ix == pytest.approx(16 / 3, rel=0.01)
        assert iy == pytest.approx(16 / 3, rel=0.01)
        assert iz == pytest.approx(32 / 3, rel=0.01)

    def test_even_function_centre_of_mass(self, paraboloid):
        result = integrate(paraboloid, None, Bounds(-1, 1, -1, 1), 40)
        cx, cy, cz = result.center_of_mass
        assert cx == pytest.approx(0.0, abs=1e-9)
        assert cy == pytest.approx(0.0, abs=1e-9)
        assert cz > 0

    def test_volume_is_unsigned(self):
        f = compile_expression("x", 2)
        result = integrate(f, None, Bounds(-1, 1, 0, 1), 50)
        assert result.volume == pytest.approx(1.0, rel=0.01)
        assert result.surface_area == pytest.approx(2 * math.sqrt(2), rel=0.01)

    def test_density_weights_mass(self):
        rho = compile_expression("x", 2)
        result = integrate(constant(0), rho, Bounds(0, 1, 0, 1), 50)
        assert result.mass == pytest.approx(0.5, rel=0.01)
        assert result.center_of_mass[0] == pytest.approx(2 / 3, rel=0.01)

    def test_zero_mass_centre_is_origin(self):
        result = integrate(constant(1), constant(0), Bounds(0, 1, 0, 1), 10)
        assert result.mass == 0.0
        assert result.center_of_mass == (0.0, 0.0, 0.0)

    def test_slope_failure_counts_in_volume_only(self):
        def step(x, y):
            return 1.0 if x <= 1.5 else float("nan")

        result = integrate(step, None, Bounds(0, 2, 0, 1), 2)
        assert result.defined_samples == 4
        assert result.smooth_samples == 2
        assert result.volume == pytest.approx(2.0)
        assert result.surface_area == pytest.approx(1.0)
        assert result.mass == pytest.approx(1.0)

    def test_undefined_density_skipped(self):
        rho = compile_expression("1/(x - 0.25)", 2)
        result = integrate(constant(1), rho, Bounds(0, 1, 0, 1), 2)
        # Cell centres are at x = 0.25 (undefined density) and x = 0.75
        assert result.mass == pytest.approx(2 * 2.0 * 0.25)
        assert math.isfinite(result.center_of_mass[0])

    def test_degenerate_bounds_widened(self):
        result = integrate(constant(1), None, Bounds(1, 1, 0, 0), 10)
        assert result.bounds == Bounds(1, 2, 0, 1)
        assert result.volume == pytest.approx(1.0)

    def test_reversed_bounds_swapped(self):
        result = integrate(constant(1), None, Bounds(2, 0, 2, 0), 10)
        assert result.bounds == Bounds(0, 2, 0, 2)
        assert result.volume == pytest.approx(4.0)

    def test_non_finite_bounds_are_undefined(self):
        result = integrate(constant(1), None, Bounds(-math.inf, 1, 0, 1), 10)
        assert math.isnan(result.volume)
        assert result.to_dict()["volume"] is None

    def test_undefined_surface(self):
        result = integrate(constant("sqrt(-1)"), None, Bounds(0, 1, 0, 1), 5)
        assert result.volume == 0.0
        assert result.defined_samples == 0
        assert result.center_of_mass == (0.0, 0.0, 0.0)

    def test_idempotent(self):
        f = compile_expression("sin(x)*cos(y)", 2)
        assert integrate(f, None, Bounds(-1, 1, -1, 1), 20) == integrate(f, None, Bounds(-1, 1, -1, 1), 20)


class TestRegionStatistics:
    """Tests for region_statistics()."""

    def test_constant_block(self):
        result = region_statistics(constant(1), 1.0, 20)
        assert result.cells_per_axis == 20
        assert result.volume == pytest.approx(4.0)
        assert result.mass == pytest.approx(4.0)
        assert result.z_min == 1.0
        assert result.z_max == 1.0
        assert result.center_of_mass[0] == pytest.approx(0.0, abs=1e-9)
        assert result.center_of_mass[1] == pytest.approx(0.0, abs=1e-9)
        assert result.center_of_mass[2] == pytest.approx(0.5)

    def test_negative_part_ignored(self):
        result = region_statistics(constant(-1), 1.0, 20)
        assert result.volume == 0.0
        assert result.z_min == -1.0
        assert all(math.isnan(c) for c in result.center_of_mass)
        assert result.to_dict()["center_of_mass"] == {"x": None, "y": None, "z": None}

    def test_domain_mask(self):
        mask = compile_expression("x", 2)
        result = region_statistics(constant(1), 1.0, 20, domain=mask)
        assert result.included_samples == 200
        assert result.volume == pytest.approx(2.0)
        assert result.center_of_mass[0] == pytest.approx(-0.5)

    @pytest.mark.parametrize(
        "density,cells",
        [(5, 16), (16.5, 17), (20.4, 20), (1000, 200), (float("nan"), 16)],
    )
    def test_grid_density_clamped(self, density, cells):
        assert region_statistics(constant(1), 1.0, density).cells_per_axis == cells

    def test_nothing_defined(self):
        result = region_statistics(constant("ln(-1)"), 1.0, 16)
        assert math.isnan(result.z_min)
        assert math.isnan(result.z_max)
        assert result.included_samples == 0


class TestIntegrationCapability:
    """Tests for the tool handlers."""

    @pytest.fixture
    def capability(self):
        return IntegrationCapability()

    def test_double_integral_tool(self, capability):
        result = capability.handle(
            "double_integral",
            {"expression": "1", "x_min": 0, "x_max": 2, "y_min": 0, "y_max": 2},
        )
        data = result.result
        assert data["volume"] == pytest.approx(4.0)
        assert data["resolution"] == 50
        assert data["samples"] == 2500
        assert set(data["moment_of_inertia"]) == {"Ix", "Iy", "Iz"}

    def test_reversed_bounds_tool(self, capability):
        result = capability.handle(
            "double_integral",
            {"expression": "1", "x_min": 2, "x_max": 0, "y_min": 0, "y_max": 2, "resolution": 10},
        )
        assert result.result["bounds"]["x_min"] == 0
        assert result.result["volume"] == pytest.approx(4.0)

    def test_density_and_time(self, capability):
        result = capability.handle(
            "double_integral",
            {"expression": "0", "density": "t", "t": 2, "x_min": 0, "x_max": 1, "y_min": 0, "y_max": 1},
        )
        assert result.result["mass"] == pytest.approx(2.0)

    def test_non_finite_bound_rejected(self, capability):
        with pytest.raises(InvalidInputError):
            capability.handle("double_integral", {"expression": "1", "x_min": float("inf")})

    def test_resolution_must_be_integer(self, capability):
        with pytest.raises(InvalidInputError):
            capability.handle("double_integral", {"expression": "1", "resolution": 2.5})

    def test_region_statistics_tool(self, capability):
        result = capability.handle(
            "region_statistics",
            {"expression": "1", "range": 1, "grid_density": 20, "domain": "x^2 + y^2 - 4"},
        )
        assert result.result["volume"] == pytest.approx(4.0)
        assert result.result["cells_per_axis"] == 20
