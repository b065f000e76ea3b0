"""Tests for the matplotlib driver (Agg backend, see conftest)."""

from types import SimpleNamespace

import matplotlib.pyplot as plt
import numpy as np
import pytest

from pointer_flock.config import SimulationConfig
from pointer_flock.simulator import FlockSimulator
from pointer_flock.visualize import FlockVisualizer, plot_single_frame, triangle_vertices


@pytest.fixture
def visualizer():
    sim = FlockSimulator(5, (320.0, 240.0), seed=1)
    vis = FlockVisualizer(sim, SimulationConfig())
    yield vis
    plt.close(vis.fig)


def test_triangle_points_along_heading():
    vertices = triangle_vertices(np.array([[10.0, 20.0]]), np.array([0.0]), 8.0)

    assert vertices.shape == (1, 3, 2)
    np.testing.assert_allclose(vertices[0, 0], [18.0, 20.0])
    np.testing.assert_allclose(vertices[0, 1], [10.0 - 4.0, 20.0 + 8.0 * np.sin(2 * np.pi / 3)])
    np.testing.assert_allclose(vertices[0, 2], [10.0 - 4.0, 20.0 - 8.0 * np.sin(2 * np.pi / 3)])


def test_triangle_vertices_empty_flock():
    assert triangle_vertices(np.zeros((0, 2)), np.zeros(0), 8.0).shape == (0, 3, 2)


def test_draw_boids_one_triangle_each(visualizer):
    visualizer.draw_boids()
    assert len(visualizer.triangles.get_paths()) == 5


def test_pointer_move_sets_repulsor(visualizer):
    event = SimpleNamespace(inaxes=visualizer.ax, xdata=40.0, ydata=50.0)
    visualizer.on_pointer_move(event)
    assert tuple(visualizer.simulator.repulsor) == (40.0, 50.0)


def test_pointer_outside_axes_ignored(visualizer):
    visualizer.on_pointer_move(SimpleNamespace(inaxes=None, xdata=None, ydata=None))
    assert visualizer.simulator.repulsor is None


def test_pointer_leave_clears_repulsor(visualizer):
    visualizer.simulator.set_repulsor((1.0, 1.0))
    visualizer.on_pointer_leave(SimpleNamespace(inaxes=visualizer.ax))
    assert visualizer.simulator.repulsor is None


def test_axes_match_world(visualizer):
    assert visualizer.ax.get_xlim() == (0.0, 320.0)
    assert visualizer.ax.get_ylim() == (240.0, 0.0)


def test_plot_single_frame_saves(tmp_path):
    sim = FlockSimulator(10, (320.0, 240.0))
    path = tmp_path / "frame.png"
    plot_single_frame(sim, SimulationConfig(), save_path=str(path))
    assert path.exists()
