"""Pointer-reactive boid flocking simulation in JAX."""

from pointer_flock.config import (
    InvalidConfiguration,
    RuleParameters,
    SimulationConfig,
    apply_viewport_policy,
    validate_parameters,
)
from pointer_flock.simulator import Agent, FlockSimulator, Vec2

__all__ = [
    "Agent",
    "FlockSimulator",
    "InvalidConfiguration",
    "RuleParameters",
    "SimulationConfig",
    "Vec2",
    "apply_viewport_policy",
    "validate_parameters",
]
