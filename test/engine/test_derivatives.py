"""Tests for the finite-difference derivative engine."""

import math

import pytest

from surfcalc.exceptions import InvalidInputError
from surfcalc.math_engine.base import CriticalKind
from surfcalc.math_engine.capabilities.derivatives import (
    DerivativesCapability,
    central_gradient,
    derivatives,
    gradient_field,
)
from surfcalc.math_engine.expression import compile_expression


class TestDerivatives:
    """Tests for derivatives()."""

    def test_paraboloid_accuracy(self, paraboloid):
        result = derivatives(paraboloid, 1.0, 1.0, 1e-3)
        assert result.value == pytest.approx(2.0)
        assert result.fx == pytest.approx(2.0, abs=1e-2)
        assert result.fy == pytest.approx(2.0, abs=1e-2)
        assert result.fxx == pytest.approx(2.0, abs=1e-2)
        assert result.fyy == pytest.approx(2.0, abs=1e-2)
        assert result.fxy == pytest.approx(0.0, abs=1e-2)

    def test_mixed_partial(self):
        f = compile_expression("x^2*y", 2)
        result = derivatives(f, 1.0, 2.0)
        assert result.fx == pytest.approx(4.0, abs=1e-3)
        assert result.fy == pytest.approx(1.0, abs=1e-3)
        assert result.fxy == pytest.approx(2.0, abs=1e-2)

    def test_gradient_magnitude_and_direction(self):
        f = compile_expression("3*x + 4*y", 2)
        result = derivatives(f, 0.3, -0.7)
        assert result.gradient_magnitude == pytest.approx(5.0)
        assert result.gradient_direction[0] == pytest.approx(0.6)
        assert result.gradient_direction[1] == pytest.approx(0.8)

    def test_zero_gradient_direction(self):
        f = compile_expression("7", 2)
        result = derivatives(f, 1.0, 1.0)
        assert result.gradient_magnitude == 0.0
        assert result.gradient_direction == (0.0, 0.0)

    def test_undefined_sample_propagates(self):
        f = compile_expression("sqrt(x)", 2)
        result = derivatives(f, 0.0, 1.0)
        assert math.isnan(result.fx)
        assert math.isnan(result.fxx)
        assert result.fy == 0.0
        assert math.isnan(result.gradient_magnitude)
        assert all(math.isnan(c) for c in result.gradient_direction)

    @pytest.mark.parametrize("h", [0.0, -1e-3, float("nan")])
    def test_invalid_step_gives_nan(self, paraboloid, h):
        result = derivatives(paraboloid, 1.0, 1.0, h)
        assert result.value == pytest.approx(2.0)
        for value in (result.fx, result.fy, result.fxx, result.fyy, result.fxy):
            assert math.isnan(value)

    def test_plain_python_callable(self):
        result = derivatives(lambda x, y: x * y, 2.0, 3.0)
        assert result.fx == pytest.approx(3.0)
        assert result.fy == pytest.approx(2.0)

    def test_raising_callable_is_undefined(self):
        def broken(x, y):
            raise RuntimeError("boom")

        result = derivatives(broken, 0.0, 0.0)
        assert math.isnan(result.value)
        assert math.isnan(result.fx)

    def test_central_gradient(self, paraboloid):
        fx, fy = central_gradient(paraboloid, 2.0, -1.0)
        assert fx == pytest.approx(4.0, abs=1e-6)
        assert fy == pytest.approx(-2.0, abs=1e-6)

    def test_idempotent(self, paraboloid):
        assert derivatives(paraboloid, 0.4, 0.9) == derivatives(paraboloid, 0.4, 0.9)


class TestSecondDerivativeTest:
    """Tests for classify() and directional_derivative()."""

    @pytest.mark.parametrize(
        "expr,kind",
        [
            ("x^2 + y^2", CriticalKind.MINIMUM),
            ("-x^2 - y^2", CriticalKind.MAXIMUM),
            ("x^2 - y^2", CriticalKind.SADDLE),
        ],
    )
    def test_classification_at_origin(self, expr, kind):
        result = derivatives(compile_expression(expr, 2), 0.0, 0.0)
        assert result.classify() is kind

    def test_not_stationary(self, paraboloid):
        assert derivatives(paraboloid, 1.0, 1.0).classify() is None

    def test_inconclusive(self):
        # x^4 has fxx = 0 at the origin, so D = 0
        result = derivatives(compile_expression("x^4", 2), 0.0, 0.0)
        assert result.classify() is None

    def test_hessian_determinant(self, paraboloid):
        assert derivatives(paraboloid, 0.5, 0.5).hessian_determinant == pytest.approx(4.0, abs=1e-3)

    def test_directional_derivative(self, paraboloid):
        result = derivatives(paraboloid, 1.0, 1.0)
        assert result.directional_derivative(1.0, 1.0) == pytest.approx(2 * math.sqrt(2), abs=1e-3)
        assert result.directional_derivative(3.0, 0.0) == pytest.approx(2.0, abs=1e-3)
        assert math.isnan(result.directional_derivative(0.0, 0.0))


class TestGradientField:
    """Tests for gradient_field()."""

    def test_vanishing_vector_dropped(self, paraboloid):
        result = gradient_field(paraboloid, 1.0, 3)
        assert result.samples_per_axis == 3
        assert len(result.vectors) == 8
        assert all((v.x, v.y) != (0.0, 0.0) for v in result.vectors)

    def test_unit_directions(self, paraboloid):
        result = gradient_field(paraboloid, 2.0, 5)
        for vector in result.vectors:
            assert math.hypot(*vector.direction) == pytest.approx(1.0)
        assert result.max_magnitude == pytest.approx(math.hypot(4.0, 4.0), abs=1e-3)

    def test_minimum_two_samples(self, paraboloid):
        result = gradient_field(paraboloid, 1.0, 1)
        assert result.samples_per_axis == 2
        assert len(result.vectors) == 4

    def test_undefined_region_dropped(self):
        f = compile_expression("sqrt(x)", 2)
        result = gradient_field(f, 1.0, 3)
        assert all(v.x > 0 for v in result.vectors)

    def test_empty_field_max_magnitude_is_null(self):
        result = gradient_field(compile_expression("1", 2), 1.0, 4)
        assert result.vectors == []
        assert result.to_dict()["max_magnitude"] is None


class TestDerivativesCapability:
    """Tests for the tool handlers."""

    @pytest.fixture
    def capability(self):
        return DerivativesCapability()

    def test_partial_derivatives_tool(self, capability):
        result = capability.handle(
            "partial_derivatives", {"expression": "x^2 + y^2", "x": 1, "y": 1}
        )
        data = result.result
        assert data["fx"] == pytest.approx(2.0, abs=1e-2)
        assert data["fy"] == pytest.approx(2.0, abs=1e-2)
        assert data["classification"] is None
        assert data["h"] == 1e-3

    def test_time_parameter(self, capability):
        result = capability.handle(
            "partial_derivatives", {"expression": "x*t", "x": 1, "y": 0, "t": 3}
        )
        assert result.result["fx"] == pytest.approx(3.0)

    def test_malformed_expression_gives_nulls(self, capability):
        result = capability.handle("partial_derivatives", {"expression": "sin(", "x": 0, "y": 0})
        assert result.result["value"] is None
        assert result.result["fx"] is None

    def test_missing_point(self, capability):
        with pytest.raises(InvalidInputError):
            capability.handle("partial_derivatives", {"expression": "x", "x": 1})

    def test_non_positive_step(self, capability):
        with pytest.raises(InvalidInputError):
            capability.handle("partial_derivatives", {"expression": "x", "x": 1, "y": 1, "h": 0})

    def test_gradient_field_tool(self, capability):
        result = capability.handle(
            "gradient_field", {"expression": "x + y", "range": 1, "vectors": 4}
        )
        assert result.result["count"] == 16
        assert result.shape == [16]

    def test_gradient_field_vectors_bounds(self, capability):
        with pytest.raises(InvalidInputError):
            capability.handle("gradient_field", {"expression": "x", "vectors": 500})

    def test_unknown_tool(self, capability):
        with pytest.raises(InvalidInputError):
            capability.handle("nope", {})
