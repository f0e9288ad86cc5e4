"""Tests for the domain/range scanner and heatmap sampling."""

import math

import numpy as np
import pytest

from surfcalc.exceptions import InvalidInputError
from surfcalc.math_engine.base import CriticalKind
from surfcalc.math_engine.capabilities.domain import (
    DomainCapability,
    sample_heatmap,
    scan_domain_range,
)
from surfcalc.math_engine.expression import compile_expression
from surfcalc.math_engine.sampling import Bounds


class TestScanDomainRange:
    """Tests for scan_domain_range()."""

    def test_paraboloid(self, paraboloid):
        result = scan_domain_range(paraboloid, 1.0, 10)
        assert result.total_points == 121
        assert result.valid_ratio == 1.0
        assert result.defined_everywhere
        assert result.z_min == pytest.approx(0.0)
        assert result.z_max == pytest.approx(2.0)

        assert len(result.critical_points) == 1
        minimum = result.critical_points[0]
        assert minimum.kind is CriticalKind.MINIMUM
        assert (minimum.x, minimum.y) == pytest.approx((0.0, 0.0), abs=1e-12)

    def test_maximum_detected(self):
        result = scan_domain_range(compile_expression("1 - x^2 - y^2", 2), 2.0, 8)
        assert [p.kind for p in result.critical_points] == [CriticalKind.MAXIMUM]
        assert result.critical_points[0].z == pytest.approx(1.0)

    def test_partial_domain(self):
        result = scan_domain_range(compile_expression("sqrt(x)", 2), 1.0, 2)
        assert result.valid_points == 6
        assert result.total_points == 9
        assert result.valid_ratio == pytest.approx(2 / 3)
        assert not result.defined_everywhere

    def test_nowhere_defined(self):
        result = scan_domain_range(compile_expression("sqrt(-1 - x^2)", 2), 1.0, 4)
        assert result.valid_points == 0
        assert math.isnan(result.z_min)
        assert math.isnan(result.z_max)
        assert result.critical_points == []
        data = result.to_dict()
        assert data["z_min"] is None
        assert data["valid_ratio"] == 0.0

    def test_extrema_sorted_and_truncated(self):
        f = compile_expression("sin(3*x)*sin(3*y) + x/10", 2)
        result = scan_domain_range(f, 3.0, 20)
        magnitudes = [abs(p.z) for p in result.critical_points]
        assert len(magnitudes) <= 5
        assert magnitudes == sorted(magnitudes, reverse=True)

    def test_extrema_need_defined_neighbours(self):
        # The minimum of |x| + |y| sits next to an undefined column
        f = compile_expression("abs(x) + abs(y) + 0*sqrt(x + 0.05)", 2)
        result = scan_domain_range(f, 1.0, 10)
        assert result.critical_points == []

    def test_zero_range_widened(self, paraboloid):
        result = scan_domain_range(paraboloid, 0.0, 4)
        assert result.bounds == Bounds(-0.5, 0.5, -0.5, 0.5)
        assert result.total_points == 25


class TestHeatmap:
    """Tests for sample_heatmap()."""

    def test_linear_ramp(self):
        result = sample_heatmap(compile_expression("x", 2), Bounds(0, 1, 0, 1), 4)
        assert result.xs.tolist() == [0.0, 0.25, 0.5, 0.75]
        assert result.values.shape == (4, 4)
        assert result.z_min == 0.0
        assert result.z_max == 0.75
        np.testing.assert_allclose(result.normalized[0], [0.0, 1 / 3, 2 / 3, 1.0])

    def test_flat_field_not_normalised(self):
        result = sample_heatmap(compile_expression("1", 2), Bounds(0, 1, 0, 1), 3)
        assert np.isnan(result.normalized).all()
        assert result.to_dict()["normalized"] == [[None] * 3] * 3

    def test_undefined_samples(self):
        result = sample_heatmap(compile_expression("sqrt(x - 0.3)", 2), Bounds(0, 1, 0, 1), 4)
        assert np.isnan(result.values[:, :2]).all()
        assert np.isfinite(result.normalized[:, 2:]).all()
        assert result.to_dict()["values"][0][0] is None

    def test_constraint_points(self):
        result = sample_heatmap(
            compile_expression("y", 2),
            Bounds(0, 1, 0, 1),
            4,
            constraint=compile_expression("x - 0.5", 2),
        )
        assert result.constraint_points == [(0.5, 0.0), (0.5, 0.25), (0.5, 0.5), (0.5, 0.75)]


class TestDomainCapability:
    """Tests for the tool handlers."""

    @pytest.fixture
    def capability(self):
        return DomainCapability()

    def test_domain_range_tool(self, capability):
        result = capability.handle(
            "domain_range", {"expression": "x^2 + y^2", "range": 1, "resolution": 10}
        )
        data = result.result
        assert data["total_points"] == 121
        assert data["critical_points"][0]["type"] == "Minimum"
        assert data["domain"] == {"x_min": -1.0, "x_max": 1.0, "y_min": -1.0, "y_max": 1.0}

    def test_domain_range_defaults(self, capability):
        result = capability.handle("domain_range", {"expression": "sqrt(x)"})
        data = result.result
        assert data["resolution"] == 50
        assert data["domain"]["x_max"] == 4.0
        assert data["valid_ratio"] < 1.0

    def test_heatmap_tool(self, capability):
        result = capability.handle(
            "heatmap",
            {"expression": "x", "x_min": 0, "x_max": 1, "y_min": 0, "y_max": 1, "resolution": 4},
        )
        assert result.shape == [4, 4]
        assert result.result["z_max"] == 0.75
        assert result.result["constraint_points"] == []

    def test_heatmap_resolution_bounds(self, capability):
        with pytest.raises(InvalidInputError):
            capability.handle("heatmap", {"expression": "x", "resolution": 0})
