"""Configuration parameters for the pointer flock simulation."""

import math
from typing import NamedTuple


# Viewports narrower than this get the slower max speed
NARROW_VIEWPORT_WIDTH = 768
NARROW_VIEWPORT_MAX_SPEED = 0.3


class InvalidConfiguration(ValueError):
    """Raised when rule parameters or simulation setup are malformed."""


class RuleParameters(NamedTuple):
    """Immutable bundle of flocking rule parameters.

    Hashable, so it can be handed to ``jax.jit`` as a static argument.
    """

    # Perception radii
    visual_range: float = 55.0
    min_distance_boid: float = 20.0
    min_distance_mouse: float = 100.0

    # Speed limits
    max_speed: float = 0.45
    smooth_speed: float = 0.3  # Accepted but not used by any rule
    acceleration: float = 0.035
    min_speed_fraction: float = 0.5
    min_speed_target: float = 0.75

    # Rule weights
    centering_factor: float = 0.05
    matching_factor: float = 0.05
    avoid_factor_boid: float = 0.05
    avoid_factor_mouse: float = 0.025
    reduce_factor: float = 0.5


def validate_parameters(params: RuleParameters) -> RuleParameters:
    """Check that every parameter is finite and non-negative, and max speed positive.

    Args:
        params: Rule parameters to check

    Returns:
        The same parameters, for chaining

    Raises:
        InvalidConfiguration: naming the first offending field
    """
    if not isinstance(params, RuleParameters):
        raise InvalidConfiguration(
            f"expected RuleParameters, got {type(params).__name__}"
        )

    for name, value in params._asdict().items():
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise InvalidConfiguration(f"{name} must be a number, got {value!r}") from None
        if not math.isfinite(value):
            raise InvalidConfiguration(f"{name} must be finite, got {value}")
        if value < 0:
            raise InvalidConfiguration(f"{name} must be non-negative, got {value}")

    if params.max_speed <= 0:
        raise InvalidConfiguration(f"max_speed must be positive, got {params.max_speed}")

    return params


def apply_viewport_policy(params: RuleParameters, viewport_width: float) -> RuleParameters:
    """Lower the max speed for narrow viewports.

    Args:
        params: Rule parameters chosen by the driver
        viewport_width: Width of the drawing surface in pixels

    Returns:
        Parameters with ``max_speed`` reduced when the viewport is narrow
    """
    if viewport_width < NARROW_VIEWPORT_WIDTH:
        return params._replace(max_speed=NARROW_VIEWPORT_MAX_SPEED)
    return params


class SimulationConfig:
    """Configuration for the simulation driver."""

    # Simulation parameters
    num_boids: int = 50
    seed: int = 0

    # World boundaries (pixels)
    world_width: float = 1280.0
    world_height: float = 720.0

    # Visualization
    boid_size: float = 8.0  # Also the wraparound margin
    boid_color: str = '#38425c'
    background_color: str = 'white'
    interval: int = 16  # Milliseconds between frames

    # Flocking rules
    rules: RuleParameters = RuleParameters()


# Default configuration
default_config = SimulationConfig()
default_rules = RuleParameters()
