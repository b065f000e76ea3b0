"""Main entry point for the pointer flock simulation."""

import argparse
import logging

from pointer_flock.config import (
    InvalidConfiguration,
    SimulationConfig,
    apply_viewport_policy,
)
from pointer_flock.simulator import FlockSimulator


def build_parser():
    parser = argparse.ArgumentParser(description='Run a pointer-reactive boid simulation')
    parser.add_argument('--num-boids', type=int, default=SimulationConfig.num_boids, help='Number of boids')
    parser.add_argument('--frames', type=int, default=500, help='Number of frames to simulate')
    parser.add_argument('--seed', type=int, default=SimulationConfig.seed, help='Random seed')
    parser.add_argument('--width', type=float, default=SimulationConfig.world_width, help='World width in pixels')
    parser.add_argument('--height', type=float, default=SimulationConfig.world_height, help='World height in pixels')
    parser.add_argument('--size', type=float, default=SimulationConfig.boid_size, help='Boid draw size and wrap margin')
    parser.add_argument('--max-speed', type=float, default=None,
                        help='Override max speed (disables the narrow viewport slowdown)')
    parser.add_argument('--save', type=str, default=None, help='Save animation to file (e.g., flock.mp4 or flock.gif)')
    parser.add_argument('--snapshot', action='store_true', help='Just save a single snapshot instead of animating')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser


def build_config(args) -> SimulationConfig:
    """Create a configuration from parsed command line arguments."""
    config = SimulationConfig()
    config.num_boids = args.num_boids
    config.seed = args.seed
    config.world_width = args.width
    config.world_height = args.height
    config.boid_size = args.size

    if args.max_speed is None:
        config.rules = apply_viewport_policy(config.rules, config.world_width)
    else:
        config.rules = config.rules._replace(max_speed=args.max_speed)
    return config


def main(argv=None):
    """Run the pointer flock simulation."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(name)s %(levelname)s: %(message)s')

    config = build_config(args)

    print(f"Initializing simulation with {config.num_boids} boids...")
    print(f"World size: {config.world_width:g} x {config.world_height:g}")
    print(f"Visual range: {config.rules.visual_range}")
    print(f"Max speed: {config.rules.max_speed}")

    try:
        simulator = FlockSimulator(
            config.num_boids,
            (config.world_width, config.world_height),
            config.rules,
            margin=config.boid_size,
            seed=config.seed,
        )
    except InvalidConfiguration as exc:
        parser.error(str(exc))

    from pointer_flock.visualize import FlockVisualizer, plot_single_frame

    if args.snapshot:
        # Just save a snapshot
        snapshot_path = args.save or 'flock_snapshot.png'
        plot_single_frame(simulator, config, save_path=snapshot_path)
    elif args.save:
        # Save animation to file
        print(f"Rendering {args.frames} frames...")
        visualizer = FlockVisualizer(simulator, config)
        visualizer.save_animation(args.save, num_frames=args.frames, fps=30)
    else:
        # Interactive animation
        print(f"Starting interactive animation ({args.frames} frames)...")
        print("Move the pointer over the window to scatter the flock. Close the window to exit.")
        visualizer = FlockVisualizer(simulator, config)
        anim = visualizer.animate(num_frames=args.frames)
        visualizer.show()


if __name__ == '__main__':
    main()
