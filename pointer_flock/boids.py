"""Core flocking logic using JAX.

Every function here is pure and vectorised over the whole flock. A step reads a
single snapshot of the flock (positions after integration, velocities from the
start of the step), so the result does not depend on agent order.
"""

from typing import NamedTuple, Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np
from jax import random

from pointer_flock.config import InvalidConfiguration, RuleParameters


class BoidState(NamedTuple):
    """State of the flock."""
    positions: jnp.ndarray  # (N, 2)
    velocities: jnp.ndarray  # (N, 2)
    headings: jnp.ndarray  # (N,) radians, derived from velocities


def compute_headings(velocities: jnp.ndarray) -> jnp.ndarray:
    """Heading of every boid, measured from the x axis."""
    return jnp.arctan2(velocities[:, 1], velocities[:, 0])


def state_from_arrays(positions, velocities) -> BoidState:
    """Build a state from array-likes of shape (N, 2), deriving headings.

    Raises:
        InvalidConfiguration: if either array is not a finite (N, 2) layout,
            or the two differ in length
    """
    arrays = []
    for name, values in (('positions', positions), ('velocities', velocities)):
        try:
            values = np.asarray(values, dtype=np.float32)
        except (TypeError, ValueError):
            raise InvalidConfiguration(f"{name} must be numeric, got {values!r}") from None
        if values.size == 0:
            values = values.reshape(0, 2)
        if values.ndim != 2 or values.shape[1] != 2:
            raise InvalidConfiguration(f"{name} must have shape (N, 2), got {values.shape}")
        if not np.isfinite(values).all():
            raise InvalidConfiguration(f"{name} must be finite")
        arrays.append(values)

    positions, velocities = arrays
    if positions.shape != velocities.shape:
        raise InvalidConfiguration(
            f"positions {positions.shape} and velocities {velocities.shape} differ in shape"
        )
    velocities = jnp.asarray(velocities)
    return BoidState(positions=jnp.asarray(positions), velocities=velocities,
                     headings=compute_headings(velocities))


def initialize_boids(key: random.PRNGKey, num_boids: int, width: float, height: float) -> BoidState:
    """Initialize boid positions and velocities randomly.

    Args:
        key: JAX random key
        num_boids: Number of boids
        width: World width
        height: World height

    Returns:
        Initial boid state
    """
    key_pos, key_vel = random.split(key)

    # Random positions within world bounds
    positions = random.uniform(
        key_pos,
        shape=(num_boids, 2),
        minval=jnp.array([0.0, 0.0]),
        maxval=jnp.array([width, height])
    )

    # Small random velocities, each component in [-1, 1)
    velocities = random.uniform(key_vel, shape=(num_boids, 2), minval=-1.0, maxval=1.0)

    return BoidState(positions=positions, velocities=velocities,
                     headings=compute_headings(velocities))


def compute_pairwise_distances(positions: jnp.ndarray) -> jnp.ndarray:
    """Compute pairwise distances between all boids.

    Args:
        positions: Boid positions (N, 2)

    Returns:
        Distance matrix (N, N), zero on the diagonal
    """
    # Compute differences: (N, 1, 2) - (1, N, 2) = (N, N, 2)
    diff = positions[:, None, :] - positions[None, :, :]
    return jnp.sqrt(jnp.sum(diff ** 2, axis=-1))


def normalize(vectors: jnp.ndarray) -> jnp.ndarray:
    """Scale vectors to unit length along the last axis; zero vectors stay zero."""
    magnitudes = jnp.linalg.norm(vectors, axis=-1, keepdims=True)
    safe = jnp.where(magnitudes > 0, magnitudes, 1.0)
    return jnp.where(magnitudes > 0, vectors / safe, 0.0)


def limit_magnitude(vectors: jnp.ndarray, max_mag: float) -> jnp.ndarray:
    """Limit the magnitude of vectors.

    Args:
        vectors: Input vectors (N, 2)
        max_mag: Maximum magnitude

    Returns:
        Limited vectors (N, 2)
    """
    magnitudes = jnp.linalg.norm(vectors, axis=-1, keepdims=True)
    safe = jnp.where(magnitudes > 0, magnitudes, 1.0)
    return jnp.where(magnitudes > max_mag, vectors / safe * max_mag, vectors)


def steer(positions: jnp.ndarray, targets: jnp.ndarray, params: RuleParameters) -> jnp.ndarray:
    """Steering vector from each position toward its target.

    This is a direction of directions, not a seek law: the unit vector toward
    the target has the position itself subtracted before normalising again.
    The result has length ``acceleration``, capped at ``max_speed``.
    """
    desired = normalize(targets - positions)
    steering = normalize(desired - positions) * params.acceleration
    return limit_magnitude(steering, params.max_speed)


def cohesion_force(positions: jnp.ndarray, distances: jnp.ndarray, params: RuleParameters) -> jnp.ndarray:
    """Velocity change steering toward the centre of mass of neighbours.

    Neighbours include the boid itself.

    Args:
        positions: Boid positions (N, 2)
        distances: Pairwise distances (N, N)
        params: Rule parameters

    Returns:
        Velocity deltas (N, 2)
    """
    mask = distances < params.visual_range
    neighbor_counts = jnp.sum(mask, axis=1, keepdims=True)

    center_of_mass = jnp.sum(
        jnp.where(mask[:, :, None], positions[None, :, :], 0.0),
        axis=1
    ) / jnp.maximum(neighbor_counts, 1)

    steering = steer(positions, center_of_mass, params)
    return jnp.where(neighbor_counts > 0, steering * params.centering_factor, 0.0)


def separation_force(positions: jnp.ndarray, distances: jnp.ndarray, params: RuleParameters) -> jnp.ndarray:
    """Velocity change pushing each boid away from crowding neighbours.

    Args:
        positions: Boid positions (N, 2)
        distances: Pairwise distances (N, N)
        params: Rule parameters

    Returns:
        Velocity deltas (N, 2)
    """
    # Mask for neighbours within separation distance (excluding self)
    not_self = ~jnp.eye(positions.shape[0], dtype=bool)
    mask = (distances < params.min_distance_boid) & not_self

    diff = positions[:, None, :] - positions[None, :, :]  # (N, N, 2)
    move = jnp.sum(jnp.where(mask[:, :, None], diff, 0.0), axis=1)

    return normalize(move) * (params.avoid_factor_boid * params.reduce_factor)


def repulsor_force(positions: jnp.ndarray, repulsor: Optional[jnp.ndarray], params: RuleParameters) -> jnp.ndarray:
    """Velocity change pushing boids away from the repulsor point.

    Args:
        positions: Boid positions (N, 2)
        repulsor: Repulsor point (2,), or None when no pointer is known
        params: Rule parameters

    Returns:
        Velocity deltas (N, 2)
    """
    if repulsor is None:
        return jnp.zeros_like(positions)

    away = positions - repulsor
    distances = jnp.linalg.norm(away, axis=1, keepdims=True)
    return jnp.where(distances < params.min_distance_mouse,
                     normalize(away) * params.avoid_factor_mouse, 0.0)


def alignment(velocities: jnp.ndarray, snapshot_velocities: jnp.ndarray,
              distances: jnp.ndarray, params: RuleParameters) -> jnp.ndarray:
    """Blend velocities toward the average velocity of neighbours.

    The average, including the boid's own term, is taken over the step-start
    snapshot, while the blend starts from the post-rule velocity.

    Args:
        velocities: Velocities after the other rules (N, 2)
        snapshot_velocities: Velocities at the start of the step (N, 2)
        distances: Pairwise distances (N, N)
        params: Rule parameters

    Returns:
        Blended velocities (N, 2)
    """
    mask = distances < params.visual_range
    neighbor_counts = jnp.sum(mask, axis=1, keepdims=True)

    avg_velocity = jnp.sum(
        jnp.where(mask[:, :, None], snapshot_velocities[None, :, :], 0.0),
        axis=1
    ) / jnp.maximum(neighbor_counts, 1)

    blended = velocities + (avg_velocity - velocities) * params.matching_factor
    return jnp.where(neighbor_counts > 0, blended, velocities)


def clamp_speed(velocities: jnp.ndarray, params: RuleParameters) -> jnp.ndarray:
    """Cap speed at ``max_speed`` and lift stalling boids back up.

    Boids slower than ``max_speed * min_speed_fraction`` are rescaled to
    ``max_speed * min_speed_target``. Stationary boids are left alone.
    """
    speeds = jnp.linalg.norm(velocities, axis=1, keepdims=True)
    safe = jnp.where(speeds > 0, speeds, 1.0)
    direction = velocities / safe

    too_fast = speeds > params.max_speed
    too_slow = (speeds > 0) & (speeds < params.max_speed * params.min_speed_fraction)

    velocities = jnp.where(too_fast, direction * params.max_speed, velocities)
    return jnp.where(too_slow, direction * (params.max_speed * params.min_speed_target), velocities)


def wrap_positions(positions: jnp.ndarray, bounds: Tuple[float, float], margin: float) -> jnp.ndarray:
    """Wrap boids that left the world (plus margin) to the opposite edge.

    Args:
        positions: Boid positions (N, 2)
        bounds: World (width, height)
        margin: Distance past the edge before a boid wraps

    Returns:
        Wrapped positions (N, 2)
    """
    upper = jnp.array([bounds[0] + margin, bounds[1] + margin], dtype=positions.dtype)
    positions = jnp.where(positions > upper, -margin, positions)
    return jnp.where(positions < -margin, upper, positions)


def update_boids(state: BoidState, repulsor: Optional[jnp.ndarray], params: RuleParameters,
                 bounds: Tuple[float, float], margin: float) -> BoidState:
    """Update boid positions and velocities for one frame.

    Args:
        state: Current boid state
        repulsor: Repulsor point (2,), or None
        params: Rule parameters
        bounds: World (width, height)
        margin: Wraparound margin

    Returns:
        Updated boid state
    """
    # Integrate first; the rules see the moved flock
    positions = state.positions + state.velocities
    distances = compute_pairwise_distances(positions)

    velocities = state.velocities
    velocities = velocities + cohesion_force(positions, distances, params)
    velocities = velocities + separation_force(positions, distances, params)
    velocities = velocities + repulsor_force(positions, repulsor, params)
    velocities = alignment(velocities, state.velocities, distances, params)
    velocities = clamp_speed(velocities, params)

    positions = wrap_positions(positions, bounds, margin)

    return BoidState(positions=positions, velocities=velocities,
                     headings=compute_headings(velocities))


# JIT compile the update function for performance
update_boids_jit = jax.jit(update_boids, static_argnames=['params', 'bounds', 'margin'])
