"""Double Integration Capability.

Midpoint Riemann sums over a rectangle for volume, surface area, mass,
centre of mass and moments of inertia of z = f(x, y), plus the region
statistics shown by the surface inspector (positive-part volume and the
centre of mass of the solid under the surface, optionally restricted to a
sub-region).

Modelling choices kept on purpose:
- ``volume`` is unsigned: a cell contributes |f| dA, so lobes below the
  plane add to the volume instead of cancelling.
- A cell whose slope cannot be estimated (fx or fy undefined) still adds to
  the volume but is left out of surface area, mass and moments.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from surfcalc.config import get_settings
from surfcalc.exceptions import InvalidInputError
from surfcalc.logger import session_logger as logger
from surfcalc.logger.decorators import log_execution_time
from surfcalc.math_engine.arguments import (
    BOUNDS_PROPERTIES,
    EXPRESSION_SCHEMA,
    TIME_SCHEMA,
    bounds_arg,
    int_arg,
    number_arg,
    optional_surface_arg,
    surface_arg,
)
from surfcalc.math_engine.base import MathCapability, MathResult, ToolDefinition, json_number
from surfcalc.math_engine.capabilities.derivatives import central_gradient
from surfcalc.math_engine.expression import NAN
from surfcalc.math_engine.sampling import Bounds, as_total, cell_centers

# Slope step for the surface element, independent of the integration grid
SURFACE_STEP = 1e-3

MIN_REGION_CELLS = 16
MAX_REGION_CELLS = 200


def _unit_density(x: float, y: float) -> float:
    return 1.0


Vector3 = Tuple[float, float, float]


@dataclass(frozen=True)
class IntegrationResult:
    """Aggregates of a double Riemann sum over a rectangle."""

    bounds: Bounds
    resolution: int
    volume: float
    surface_area: float
    mass: float
    center_of_mass: Vector3
    moment_of_inertia: Vector3
    defined_samples: int
    smooth_samples: int

    def to_dict(self) -> Dict[str, Any]:
        cx, cy, cz = self.center_of_mass
        ix, iy, iz = self.moment_of_inertia
        return {
            "bounds": self.bounds.to_dict(),
            "resolution": self.resolution,
            "volume": json_number(self.volume),
            "surface_area": json_number(self.surface_area),
            "mass": json_number(self.mass),
            "center_of_mass": {"x": json_number(cx), "y": json_number(cy), "z": json_number(cz)},
            "moment_of_inertia": {"Ix": json_number(ix), "Iy": json_number(iy), "Iz": json_number(iz)},
            "samples": self.resolution * self.resolution,
            "defined_samples": self.defined_samples,
            "smooth_samples": self.smooth_samples,
        }


def integrate(
    f: Callable[[float, float], float],
    density: Optional[Callable[[float, float], float]] = None,
    bounds: Bounds = Bounds(-2.0, 2.0, -2.0, 2.0),
    resolution: int = 50,
) -> IntegrationResult:
    """Integrate over `bounds` with a resolution x resolution midpoint grid.

    Args:
        f: Surface z = f(x, y)
        density: Area density rho(x, y) on the surface; constant 1 if None
        bounds: Integration rectangle; degenerate or reversed axes are corrected
        resolution: Cells per axis (at least 1)

    Returns:
        IntegrationResult. Centre of mass is (0, 0, 0) when the mass is not
        positive; every field is NaN when a bound is not finite.
    """
    f = as_total(f)
    rho = as_total(density) if density is not None else _unit_density
    bounds = bounds.normalized()
    n = max(1, int(resolution))

    if not bounds.is_finite():
        return IntegrationResult(bounds, n, NAN, NAN, NAN, (NAN, NAN, NAN), (NAN, NAN, NAN), 0, 0)

    dx = bounds.width / n
    dy = bounds.height / n
    dA = dx * dy
    xs = cell_centers(bounds.x_min, bounds.x_max, n)
    ys = cell_centers(bounds.y_min, bounds.y_max, n)

    volume = surface_area = mass = 0.0
    moment_x = moment_y = moment_z = 0.0
    inertia_x = inertia_y = inertia_z = 0.0
    defined = smooth = 0

    for x_value in xs:
        x = float(x_value)
        for y_value in ys:
            y = float(y_value)
            z = f(x, y)
            if not math.isfinite(z):
                continue
            defined += 1
            volume += abs(z) * dA

            fx, fy = central_gradient(f, x, y, SURFACE_STEP)
            if not (math.isfinite(fx) and math.isfinite(fy)):
                continue
            smooth += 1
            dS = math.sqrt(1 + fx * fx + fy * fy) * dA
            surface_area += dS

            dm = rho(x, y) * dS
            if not math.isfinite(dm):
                continue
            mass += dm
            moment_x += x * dm
            moment_y += y * dm
            moment_z += z * dm
            inertia_x += (y * y + z * z) * dm
            inertia_y += (x * x + z * z) * dm
            inertia_z += (x * x + y * y) * dm

    if mass > 0:
        center = (moment_x / mass, moment_y / mass, moment_z / mass)
    else:
        center = (0.0, 0.0, 0.0)

    logger.debug(
        "Double integral computed",
        resolution=n,
        defined_samples=defined,
        smooth_samples=smooth,
    )

    return IntegrationResult(
        bounds=bounds,
        resolution=n,
        volume=volume,
        surface_area=surface_area,
        mass=mass,
        center_of_mass=center,
        moment_of_inertia=(inertia_x, inertia_y, inertia_z),
        defined_samples=defined,
        smooth_samples=smooth,
    )


@dataclass(frozen=True)
class RegionStatistics:
    """Statistics of the solid between z = 0 and z = max(0, f) over a region."""

    bounds: Bounds
    cells_per_axis: int
    z_min: float
    z_max: float
    volume: float
    mass: float
    center_of_mass: Vector3
    included_samples: int

    def to_dict(self) -> Dict[str, Any]:
        cx, cy, cz = self.center_of_mass
        return {
            "bounds": self.bounds.to_dict(),
            "cells_per_axis": self.cells_per_axis,
            "z_min": json_number(self.z_min),
            "z_max": json_number(self.z_max),
            "volume": json_number(self.volume),
            "mass": json_number(self.mass),
            "center_of_mass": {"x": json_number(cx), "y": json_number(cy), "z": json_number(cz)},
            "included_samples": self.included_samples,
        }


def region_statistics(
    f: Callable[[float, float], float],
    half_range: float,
    grid_density: float,
    density: Optional[Callable[[float, float], float]] = None,
    domain: Optional[Callable[[float, float], float]] = None,
) -> RegionStatistics:
    """Positive-part volume, mass and centre of mass over [-r, r]^2.

    The grid has N = clamp(round(grid_density), 16, 200) cells per axis,
    sampled at cell centres. When `domain` is given only cells with
    domain(x, y) <= 0 are included. Volume counts max(0, f) dA; mass
    weights it by `density` (constant 1 if None). The centre of mass is NaN
    when the mass is not positive; z_min and z_max are NaN when no included
    sample is defined.
    """
    f = as_total(f)
    rho = as_total(density) if density is not None else _unit_density
    mask = as_total(domain) if domain is not None else None
    bounds = Bounds.square(half_range).normalized()

    if math.isfinite(grid_density):
        n = max(MIN_REGION_CELLS, min(MAX_REGION_CELLS, int(math.floor(grid_density + 0.5))))
    else:
        n = MIN_REGION_CELLS

    if not bounds.is_finite():
        return RegionStatistics(bounds, n, NAN, NAN, NAN, NAN, (NAN, NAN, NAN), 0)

    dA = (bounds.width / n) * (bounds.height / n)
    xs = cell_centers(bounds.x_min, bounds.x_max, n)
    ys = cell_centers(bounds.y_min, bounds.y_max, n)

    z_min = math.inf
    z_max = -math.inf
    volume = mass = 0.0
    mx = my = mz = 0.0
    included = 0

    for y_value in ys:
        y = float(y_value)
        for x_value in xs:
            x = float(x_value)
            if mask is not None and not (mask(x, y) <= 0):
                continue
            z = f(x, y)
            if not math.isfinite(z):
                continue
            included += 1
            z_min = min(z_min, z)
            z_max = max(z_max, z)

            h = max(0.0, z)
            dV = h * dA
            volume += dV

            sigma = rho(x, y)
            if not math.isfinite(sigma):
                continue
            dM = sigma * dV
            mass += dM
            mx += x * dM
            my += y * dM
            mz += h * h * 0.5 * sigma * dA

    if mass > 0:
        center = (mx / mass, my / mass, mz / mass)
    else:
        center = (NAN, NAN, NAN)

    if included == 0:
        z_min = z_max = NAN

    return RegionStatistics(bounds, n, z_min, z_max, volume, mass, center, included)


class IntegrationCapability(MathCapability):
    """Double integrals, mass properties and region statistics."""

    @property
    def name(self) -> str:
        return "integration"

    @property
    def description(self) -> str:
        return "Riemann-sum volume, surface area, mass, centre of mass and moments of inertia"

    def __init__(self):
        """Initialize the integration capability."""
        logger.info("IntegrationCapability initialized")

    def get_tools(self) -> List[ToolDefinition]:
        """Return list of tool definitions."""
        return [
            ToolDefinition(
                name="double_integral",
                description=(
                    "Integrate z = f(x, y, t) over a rectangle with a midpoint Riemann sum. "
                    "Returns unsigned volume (sum of |f| dA), surface area, mass for an optional "
                    "density rho(x, y, t) (default 1), centre of mass and moments of inertia "
                    "Ix, Iy, Iz. Degenerate bounds are widened by 1 and reversed bounds swapped."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "density": {"type": "string", "description": "Density rho(x, y, t); default 1"},
                        **BOUNDS_PROPERTIES,
                        "resolution": {"type": "integer", "minimum": 1, "maximum": 1000, "default": 50},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression"],
                },
                handler_name="handle_double_integral",
            ),
            ToolDefinition(
                name="region_statistics",
                description=(
                    "Value range, positive-part volume, mass and centre of mass of the solid "
                    "under z = f(x, y, t) over [-range, range]^2, optionally restricted to the "
                    "region where domain(x, y, t) <= 0."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "expression": EXPRESSION_SCHEMA,
                        "density": {"type": "string", "description": "Density sigma(x, y, t); default 1"},
                        "domain": {"type": "string", "description": "Region test; cells with domain <= 0 are included"},
                        "range": {"type": "number", "description": "Half-width of the square domain"},
                        "grid_density": {"type": "number", "description": "Cells per axis, clamped to [16, 200]"},
                        "t": TIME_SCHEMA,
                    },
                    "required": ["expression"],
                },
                handler_name="handle_region_statistics",
            ),
        ]

    @log_execution_time
    def handle(self, tool_name: str, arguments: Dict[str, Any]) -> MathResult:
        """Route tool invocation to appropriate handler."""
        if tool_name == "double_integral":
            return self.handle_double_integral(arguments)
        elif tool_name == "region_statistics":
            return self.handle_region_statistics(arguments)
        else:
            raise InvalidInputError(f"Unknown tool: {tool_name}")

    def handle_double_integral(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle double_integral tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        rho = optional_surface_arg(arguments, "density")
        bounds = bounds_arg(arguments, default_range=2.0).normalized()
        resolution = int_arg(
            arguments, "resolution", settings.integration_resolution, minimum=1, maximum=1000
        )

        result = integrate(f, rho, bounds, resolution)
        return MathResult(result=result.to_dict(), shape=[], dtype="object")

    def handle_region_statistics(self, arguments: Dict[str, Any]) -> MathResult:
        """Handle region_statistics tool."""
        settings = get_settings()
        f = surface_arg(arguments)
        rho = optional_surface_arg(arguments, "density")
        domain = optional_surface_arg(arguments, "domain")
        half_range = number_arg(arguments, "range", settings.analysis_range)
        grid_density = number_arg(arguments, "grid_density", settings.intersection_resolution)

        result = region_statistics(f, half_range, grid_density, rho, domain)
        return MathResult(result=result.to_dict(), shape=[], dtype="object")

    def list_operations(self) -> Dict[str, List[str]]:
        return {"integration": ["double_integral", "region_statistics"]}
