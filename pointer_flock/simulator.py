"""Stateful wrapper around the pure flocking step.

The driver owns the frame loop: it calls :meth:`FlockSimulator.step` once per
frame, reads the agents back for drawing, and forwards pointer movement through
:meth:`FlockSimulator.set_repulsor`.
"""

import logging
import math
from typing import NamedTuple, Optional, Tuple

import jax.numpy as jnp
import numpy as np
from jax import random

from pointer_flock.boids import BoidState, initialize_boids, state_from_arrays, update_boids_jit
from pointer_flock.config import InvalidConfiguration, RuleParameters, validate_parameters

logger = logging.getLogger(__name__)


class Vec2(NamedTuple):
    x: float
    y: float


class Agent(NamedTuple):
    """Read-only view of one boid."""
    position: Vec2
    velocity: Vec2
    heading: float


def _check_bounds(bounds, margin) -> Tuple[float, float, float]:
    try:
        width, height = (float(v) for v in bounds)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"bounds must be a (width, height) pair, got {bounds!r}") from None
    if not (math.isfinite(width) and math.isfinite(height)):
        raise InvalidConfiguration(f"bounds must be finite, got {width} x {height}")
    if not (width > 0 and height > 0):
        raise InvalidConfiguration(f"bounds must be positive, got {width} x {height}")

    try:
        margin = float(margin)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"margin must be a number, got {margin!r}") from None
    if not math.isfinite(margin):
        raise InvalidConfiguration(f"margin must be finite, got {margin}")
    if margin < 0:
        raise InvalidConfiguration(f"margin must be non-negative, got {margin}")
    return width, height, margin


class FlockSimulator:
    """A fixed-size flock advanced one frame at a time."""

    def __init__(self, agent_count: int, bounds: Tuple[float, float],
                 parameters: Optional[RuleParameters] = None, *,
                 margin: float = 8.0, seed: int = 0):
        """Create a flock with random positions inside ``bounds``.

        Args:
            agent_count: Number of boids, fixed for the life of the simulator
            bounds: World (width, height)
            parameters: Rule parameters, defaults to ``RuleParameters()``
            margin: Distance past an edge before a boid wraps, usually its draw size
            seed: Seed for the initial layout

        Raises:
            InvalidConfiguration: if any argument is malformed
        """
        if parameters is None:
            parameters = RuleParameters()
        validate_parameters(parameters)
        if isinstance(agent_count, bool) or not isinstance(agent_count, (int, np.integer)) or agent_count < 0:
            raise InvalidConfiguration(f"agent_count must be a non-negative integer, got {agent_count!r}")

        width, height, margin = _check_bounds(bounds, margin)
        self._bounds = (width, height)
        self._margin = margin
        self._parameters = parameters
        self._repulsor: Optional[Vec2] = None
        self._frame = 0
        self._state = initialize_boids(random.PRNGKey(seed), int(agent_count), *self._bounds)

        logger.debug("Created flock of %d boids in %.0f x %.0f world",
                     agent_count, *self._bounds)

    @classmethod
    def from_state(cls, positions, velocities, bounds: Tuple[float, float],
                   parameters: Optional[RuleParameters] = None, *,
                   margin: float = 8.0) -> "FlockSimulator":
        """Create a simulator with an explicit initial layout.

        Args:
            positions: Array-like of shape (N, 2)
            velocities: Array-like of shape (N, 2)
            bounds: World (width, height)
            parameters: Rule parameters
            margin: Wraparound margin

        Raises:
            InvalidConfiguration: if the layout or any other argument is malformed
        """
        state = state_from_arrays(positions, velocities)
        simulator = cls(0, bounds, parameters, margin=margin)
        simulator._state = state
        logger.debug("Replaced initial layout with %d given boids", len(simulator))
        return simulator

    def __len__(self) -> int:
        return int(self._state.positions.shape[0])

    def __repr__(self) -> str:
        width, height = self._bounds
        return (f"FlockSimulator(agents={len(self)}, bounds=({width:g}, {height:g}), "
                f"frame={self._frame}, repulsor={self._repulsor})")

    @property
    def parameters(self) -> RuleParameters:
        return self._parameters

    @property
    def bounds(self) -> Tuple[float, float]:
        return self._bounds

    @property
    def margin(self) -> float:
        return self._margin

    @property
    def frame(self) -> int:
        """Number of steps taken so far."""
        return self._frame

    @property
    def state(self) -> BoidState:
        return self._state

    @property
    def repulsor(self) -> Optional[Vec2]:
        return self._repulsor

    @property
    def positions(self) -> np.ndarray:
        return np.array(self._state.positions)

    @property
    def velocities(self) -> np.ndarray:
        return np.array(self._state.velocities)

    @property
    def headings(self) -> np.ndarray:
        return np.array(self._state.headings)

    @property
    def agents(self) -> Tuple[Agent, ...]:
        """Every boid, in a stable order."""
        positions, velocities, headings = self.positions, self.velocities, self.headings
        return tuple(
            Agent(position=Vec2(float(p[0]), float(p[1])),
                  velocity=Vec2(float(v[0]), float(v[1])),
                  heading=float(h))
            for p, v, h in zip(positions, velocities, headings)
        )

    def set_repulsor(self, point) -> None:
        """Set the point boids steer away from, or clear it with ``None``."""
        if point is None:
            self._repulsor = None
        else:
            x, y = point
            self._repulsor = Vec2(float(x), float(y))

    def step(self) -> None:
        """Advance every boid by one frame."""
        self._frame += 1
        if len(self) == 0:
            return

        repulsor = None
        if self._repulsor is not None:
            repulsor = jnp.array(self._repulsor, dtype=self._state.positions.dtype)

        self._state = update_boids_jit(self._state, repulsor, self._parameters,
                                       self._bounds, self._margin)
