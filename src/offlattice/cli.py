"""Command-line interface and plotting utilities for the simulator.

This module provides the command-line entry points and the helper
functions that write plots and outputs for single runs and noise sweeps.

Key responsibilities
- parse CLI overrides and convert them into dotted-key overrides
- run single simulations and persist outputs (NPZ, CSV, XYZ, plots)
- run noise sweeps and produce the polarization-vs-eta curve

How this module fits in
- It uses :mod:`offlattice.config` to load validated configurations.
- It calls :func:`offlattice.simulation.simulate` to produce histories.
- It uses :mod:`offlattice.metrics` for the order parameter time series
    and :mod:`offlattice.io` to save files.

Keeping plotting and file I/O here keeps the simulation core free of
side-effects, which makes the numerical code easier to test and reuse.
"""

from __future__ import annotations

import argparse
import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .config import SimulationConfig, load_config
from .io import load_particles, save_history, save_run_metadata, save_table, write_xyz
from .metrics import compute_timeseries
from .simulation import simulate
from .space import SpaceState


def _parse_overrides(unknown: List[str]) -> List[Tuple[str, str]]:
    """Convert unknown CLI args into key/value override tuples.

    The CLI accepts extra arguments like ``--simulation.eta 0.5``. The
    parser receives them as an ``unknown`` list; this helper consumes the
    list two items at a time and returns pairs without the leading
    ``--`` so callers can pass them to ``load_config``.
    """

    overrides: List[Tuple[str, str]] = []
    i = 0
    while i < len(unknown):
        key = unknown[i]
        if not key.startswith("--"):
            raise ValueError(f"Unrecognized argument '{key}'")
        if i + 1 >= len(unknown):
            raise ValueError(f"Missing value for override '{key}'")
        value = unknown[i + 1]
        overrides.append((key[2:], value))
        i += 2
    return overrides


def _convert_value(value: str):
    """Interpret an override value as JSON when possible for type fidelity.

    ``--space.N 50`` yields an int, ``--noise.kind gaussian`` stays a string.
    """

    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _footer_text(sim: SimulationConfig) -> str:
    """Create a short text summary of key simulation parameters."""

    return (
        f"N={sim.n_particles}  L={sim.side_length}  M={sim.m}  R={sim.radius}\n"
        f"eta={sim.eta}  v={sim.speed}  dt={sim.dt}  noise={sim.noise_kind}"
    )


def _plot_final(out_dir: Path, state: SpaceState, sim: SimulationConfig) -> None:
    """Save a scatter/heading quiver plot for the final recorded state."""

    pos = state.positions()
    angles = state.angles()
    fig, ax = plt.subplots(figsize=(6, 6))
    ax.scatter(pos[:, 0], pos[:, 1], c="C0", s=8, alpha=0.8)
    ax.quiver(
        pos[:, 0],
        pos[:, 1],
        np.cos(angles),
        np.sin(angles),
        angles="xy",
        scale_units="xy",
        scale=max(1.0, 2.0 / max(sim.radius, 1e-12)),
        width=0.003,
        color="C1",
        alpha=0.8,
    )
    ax.set_xlim(0, state.side_length)
    ax.set_ylim(0, state.side_length)
    ax.set_aspect("equal")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_title(f"Final positions and headings (step {state.step})")
    fig.text(0.01, 0.01, _footer_text(sim), fontsize=8)
    fig.tight_layout()
    fig.savefig(out_dir / "traj_final.png", dpi=200)
    plt.close(fig)


def _plot_order_params(out_dir: Path, metrics_df: pd.DataFrame, sim: SimulationConfig) -> None:
    """Write plots of the order parameter and spacing across the simulation."""

    fig, axes = plt.subplots(2, 1, figsize=(8, 6), sharex=True)
    axes[0].plot(metrics_df["time"], metrics_df["polarization"], label="v_a")
    axes[0].set_ylabel("Polarization")
    axes[0].set_ylim(0.0, 1.05)
    axes[0].legend()

    axes[1].plot(metrics_df["time"], metrics_df["dnn"], label="DNN", color="C2")
    axes[1].set_xlabel("Time")
    axes[1].set_ylabel("Mean NN distance")
    axes[1].legend()

    fig.text(0.01, 0.01, _footer_text(sim), fontsize=8)
    fig.tight_layout()
    fig.savefig(out_dir / "order_params.png", dpi=200)
    plt.close(fig)


def _run_single(config: Dict[str, Any], particles_path: str | None = None) -> Dict[str, Any]:
    """Execute a single simulation and write every configured output."""

    sim = SimulationConfig.from_dict(config)
    outputs = config.get("outputs", {})
    out_dir = Path(config.get("out_dir", "outputs/single"))
    out_dir.mkdir(parents=True, exist_ok=True)

    particles_path = particles_path or (config.get("initial") or {}).get("particles")
    particles = load_particles(particles_path, speed=sim.speed) if particles_path else None

    history = simulate(sim, particles, progress=bool(outputs.get("progress", True)))
    metrics_df = compute_timeseries(history, sim.dt)

    save_history(
        out_dir,
        history,
        sim.dt,
        npz=bool(outputs.get("save_npz", True)),
        csv=bool(outputs.get("save_csv", True)),
    )
    save_table(out_dir, "order_parameters", metrics_df)
    if outputs.get("save_xyz", False):
        write_xyz(out_dir / "trajectory.xyz", history)
    if outputs.get("plots", True):
        _plot_final(out_dir, history.final, sim)
        _plot_order_params(out_dir, metrics_df, sim)

    final_pol = float(metrics_df["polarization"].iloc[-1])
    save_run_metadata(
        out_dir,
        config,
        {"n_states": len(history), "final_polarization": final_pol, "simulation": sim.to_dict()},
    )
    print(f"✓ Saved outputs to {out_dir} (final polarization {final_pol:.4f})")

    return {"out_dir": out_dir, "history": history, "metrics": metrics_df}


def cmd_run(args: argparse.Namespace, overrides: List[Tuple[str, str]]) -> None:
    """Entry point for the ``run`` CLI command."""

    override_pairs = [(k, _convert_value(v)) for k, v in overrides]
    config = load_config(args.config, override_pairs)
    _run_single(config, particles_path=getattr(args, "particles", None))


def cmd_sweep(args: argparse.Namespace, overrides: List[Tuple[str, str]]) -> pd.DataFrame:
    """Entry point for the ``sweep`` CLI command that varies the noise."""

    override_pairs = [(k, _convert_value(v)) for k, v in overrides]
    base_cfg = load_config(args.config, override_pairs)

    sweep_cfg = base_cfg.get("sweep", {})
    eta_values = [float(eta) for eta in np.atleast_1d(sweep_cfg.get("eta", []))]
    reps = int(sweep_cfg.get("reps", 1))
    tail = float(sweep_cfg.get("tail", 0.5))
    base_seed = int(base_cfg.get("seed") or 0)

    root_out = Path(base_cfg.get("out_dir", "outputs/sweep"))
    records = []
    counter = 0
    for eta in eta_values:
        for rep in range(reps):
            counter += 1
            cfg = deepcopy(base_cfg)
            cfg["simulation"]["eta"] = eta
            cfg["seed"] = base_seed + counter
            cfg["out_dir"] = str(root_out / f"eta_{eta}_rep_{rep}")
            cfg["outputs"]["plots"] = False

            run = _run_single(cfg)
            pol = run["metrics"]["polarization"].to_numpy()
            start = int(np.floor((1.0 - tail) * len(pol)))
            records.append(
                {
                    "eta": eta,
                    "rep": rep,
                    "seed": cfg["seed"],
                    "out_dir": str(run["out_dir"]),
                    "final_polarization": float(pol[-1]),
                    "mean_polarization": float(np.mean(pol[start:])),
                }
            )

    manifest = pd.DataFrame.from_records(
        records,
        columns=["eta", "rep", "seed", "out_dir", "final_polarization", "mean_polarization"],
    )
    save_table(root_out, "manifest", manifest)

    if not manifest.empty:
        summary = manifest.groupby("eta")["mean_polarization"].agg(["mean", "std"]).reset_index()
        fig, ax = plt.subplots(figsize=(6, 4))
        ax.errorbar(summary["eta"], summary["mean"], yerr=summary["std"].fillna(0.0), marker="o")
        ax.set_xlabel("eta")
        ax.set_ylabel("Polarization")
        ax.set_ylim(0.0, 1.05)
        ax.set_title("Order parameter vs noise")
        fig.tight_layout()
        fig.savefig(root_out / "polarization_vs_eta.png", dpi=200)
        plt.close(fig)

    print(f"✓ Sweep complete: {len(manifest)} runs saved to {root_out}")
    return manifest


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI argument parser."""

    parser = argparse.ArgumentParser(prog="offlattice")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a single simulation")
    run.add_argument("--config", required=True, help="Path to configuration YAML")
    run.add_argument(
        "--particles",
        help="CSV with x, y, angle (and optional speed, id) columns for the initial particles",
    )

    sweep = subparsers.add_parser("sweep", help="Run a sweep over noise amplitudes")
    sweep.add_argument("--config", required=True, help="Path to configuration YAML")

    return parser


def main(argv: Iterable[str] | None = None) -> None:
    """Run the command-line interface using the provided argv sequence."""

    parser = build_parser()
    args, unknown = parser.parse_known_args(argv)
    overrides = _parse_overrides(unknown)

    if args.command == "run":
        cmd_run(args, overrides)
    elif args.command == "sweep":
        cmd_sweep(args, overrides)
    else:  # pragma: no cover - defensive
        parser.error(f"Unknown command {args.command}")


if __name__ == "__main__":
    main()
