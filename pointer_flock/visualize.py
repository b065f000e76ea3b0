"""Visualization utilities for the pointer flock simulation."""

import logging

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.collections import PolyCollection

from pointer_flock.config import SimulationConfig
from pointer_flock.simulator import FlockSimulator

logger = logging.getLogger(__name__)

# Vertex angles of a boid triangle relative to its heading
TRIANGLE_OFFSETS = np.array([0.0, 2 * np.pi / 3, -2 * np.pi / 3])


def triangle_vertices(positions: np.ndarray, headings: np.ndarray, size: float) -> np.ndarray:
    """Corners of a triangle per boid, the first corner pointing along the heading.

    Args:
        positions: Boid positions (N, 2)
        headings: Boid headings in radians (N,)
        size: Distance from the centre to each corner

    Returns:
        Vertices (N, 3, 2)
    """
    positions = np.asarray(positions, dtype=float).reshape(-1, 2)
    angles = np.asarray(headings, dtype=float).reshape(-1, 1) + TRIANGLE_OFFSETS
    offsets = np.stack([np.cos(angles), np.sin(angles)], axis=-1) * size
    return positions[:, None, :] + offsets


def _setup_axes(ax, simulator: FlockSimulator, config: SimulationConfig):
    width, height = simulator.bounds
    ax.set_xlim(0, width)
    # Screen coordinates: y grows downward
    ax.set_ylim(height, 0)
    ax.set_aspect('equal')
    ax.set_facecolor(config.background_color)
    ax.set_xticks([])
    ax.set_yticks([])


class FlockVisualizer:
    """Visualizer for the flock using matplotlib."""

    def __init__(self, simulator: FlockSimulator, config: SimulationConfig):
        """Initialize the visualizer.

        Args:
            simulator: Flock to draw and advance
            config: Simulation configuration
        """
        self.simulator = simulator
        self.config = config
        width, height = simulator.bounds
        self.fig, self.ax = plt.subplots(figsize=(10, 10 * height / width))
        _setup_axes(self.ax, simulator, config)

        self.triangles = PolyCollection(
            [], facecolors=config.boid_color, edgecolors='none'
        )
        self.ax.add_collection(self.triangles)

        # Pointer position drives the repulsor
        self._connections = [
            self.fig.canvas.mpl_connect('motion_notify_event', self.on_pointer_move),
            self.fig.canvas.mpl_connect('axes_leave_event', self.on_pointer_leave),
        ]

    def on_pointer_move(self, event):
        """Track the pointer while it is over the world."""
        if event.inaxes is not self.ax or event.xdata is None:
            return
        self.simulator.set_repulsor((event.xdata, event.ydata))

    def on_pointer_leave(self, event):
        """Forget the pointer once it leaves the world."""
        self.simulator.set_repulsor(None)

    def disconnect(self):
        """Stop listening to pointer events."""
        for cid in self._connections:
            self.fig.canvas.mpl_disconnect(cid)
        self._connections = []

    def draw_boids(self):
        """Draw the current flock as oriented triangles."""
        vertices = triangle_vertices(
            self.simulator.positions, self.simulator.headings, self.config.boid_size
        )
        self.triangles.set_verts(list(vertices))

    def animate(self, num_frames: int = 500, interval: int = None):
        """Create an animation of the flock.

        Each frame draws the current flock and then advances it one step.

        Args:
            num_frames: Number of frames to animate, or None to run until closed
            interval: Delay between frames in milliseconds

        Returns:
            matplotlib animation object
        """
        if interval is None:
            interval = self.config.interval

        def update_frame(frame):
            """Update function for animation."""
            self.draw_boids()
            self.simulator.step()
            return (self.triangles,)

        anim = FuncAnimation(
            self.fig,
            update_frame,
            frames=num_frames,
            interval=interval,
            blit=False,
            cache_frame_data=False,
        )

        return anim

    def show(self):
        """Display the plot."""
        plt.show()

    def save_animation(self, filename: str, num_frames: int = 500, fps: int = 30):
        """Save animation to file.

        Args:
            filename: Output filename (e.g., 'flock.mp4' or 'flock.gif')
            num_frames: Number of frames to render
            fps: Frames per second
        """
        anim = self.animate(num_frames=num_frames, interval=1000 // fps)

        # Determine writer based on file extension
        if filename.endswith('.gif'):
            writer = 'pillow'
        else:
            writer = 'ffmpeg'

        logger.debug("Saving %d frames to %s with %s", num_frames, filename, writer)
        anim.save(filename, writer=writer, fps=fps)
        print(f"Animation saved to {filename}")


def plot_single_frame(simulator: FlockSimulator, config: SimulationConfig, save_path: str = None):
    """Plot a single frame of the flock.

    Args:
        simulator: Flock to draw
        config: Simulation configuration
        save_path: Optional path to save the figure
    """
    width, height = simulator.bounds
    fig, ax = plt.subplots(figsize=(10, 10 * height / width))
    _setup_axes(ax, simulator, config)

    vertices = triangle_vertices(simulator.positions, simulator.headings, config.boid_size)
    ax.add_collection(PolyCollection(list(vertices), facecolors=config.boid_color, edgecolors='none'))

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Figure saved to {save_path}")
    else:
        plt.show()

    plt.close(fig)
