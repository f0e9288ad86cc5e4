"""Math Engine Capabilities Package.

One module per analysis component. Each module exposes its pure analysis
function(s) and a capability class that adapts them to named tools.
"""

from surfcalc.math_engine.capabilities.derivatives import DerivativesCapability
from surfcalc.math_engine.capabilities.domain import DomainCapability
from surfcalc.math_engine.capabilities.expression import ExpressionCapability
from surfcalc.math_engine.capabilities.integration import IntegrationCapability
from surfcalc.math_engine.capabilities.intersection import IntersectionCapability
from surfcalc.math_engine.capabilities.limits import LimitsCapability
from surfcalc.math_engine.capabilities.optimization import OptimizationCapability

ALL_CAPABILITIES = (
    ExpressionCapability,
    DerivativesCapability,
    IntegrationCapability,
    OptimizationCapability,
    LimitsCapability,
    DomainCapability,
    IntersectionCapability,
)

__all__ = [
    "ALL_CAPABILITIES",
    "DerivativesCapability",
    "DomainCapability",
    "ExpressionCapability",
    "IntegrationCapability",
    "IntersectionCapability",
    "LimitsCapability",
    "OptimizationCapability",
]
