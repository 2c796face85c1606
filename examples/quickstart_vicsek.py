"""Quickstart example for the off-lattice Vicsek simulator.

References
~~~~~~~~~~
- Vicsek et al. (1995), Phys. Rev. Lett. 75, 1226, for the alignment rule.

This script demonstrates the end-to-end workflow:
1. Load a YAML configuration.
2. Build the immutable simulation config and run the loop step by step.
3. Compute the order parameter over time and save the trajectory.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from offlattice.config import SimulationConfig, load_config
from offlattice.io import save_history, save_table
from offlattice.metrics import compute_timeseries
from offlattice.simulation import SimulationLoop, initial_space

CONFIG = Path("examples/configs/vicsek.yaml")
OUTPUT = Path("outputs/quickstart")


def main() -> None:
    cfg = load_config(CONFIG, [("simulation.iterations", 500)])
    sim = SimulationConfig.from_dict(cfg)

    rng = np.random.default_rng(sim.seed)
    loop = SimulationLoop(sim, rng, progress=True)
    space = initial_space(sim, rng)
    history = loop.run(space)

    metrics = compute_timeseries(history, sim.dt)
    save_history(OUTPUT, history, sim.dt)
    save_table(OUTPUT, "order_parameters", metrics)

    print(f"Recorded {len(history)} states")
    print(f"Final polarization: {metrics['polarization'].iloc[-1]:.4f}")


if __name__ == "__main__":
    main()
