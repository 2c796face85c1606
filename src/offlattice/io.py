"""Input/output utilities for simulation artifacts."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Mapping

import numpy as np
import pandas as pd

from .particle import Particle
from .state import StateHistory


def _artifact_path(out_dir: str | Path, filename: str) -> Path:
    """Path of ``filename`` inside ``out_dir``, creating the directory."""

    directory = Path(out_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / filename


def save_table(out_dir: str | Path, name: str, df: pd.DataFrame) -> Path:
    """Write ``df`` to ``<out_dir>/<name>.csv`` without the index column."""

    path = _artifact_path(out_dir, f"{name}.csv")
    df.to_csv(path, index=False)
    return path


def save_history(
    out_dir: str | Path,
    history: StateHistory,
    dt: float = 1.0,
    *,
    npz: bool = True,
    csv: bool = True,
) -> Dict[str, Path]:
    """Write the trajectory archive and/or the long-format particle table.

    ``trajectory.npz`` holds ``traj (T, N, 2)``, ``angles (T, N)``,
    ``steps``, ``times`` and the scalar ``side_length``.
    """

    written: Dict[str, Path] = {}
    if npz:
        traj, angles = history.to_arrays()
        path = _artifact_path(out_dir, "trajectory.npz")
        np.savez_compressed(
            path,
            traj=traj,
            angles=angles,
            steps=history.steps(),
            times=history.times(dt),
            side_length=np.array(history.final.side_length if len(history) else np.nan),
        )
        written["npz"] = path
    if csv:
        written["csv"] = save_table(out_dir, "particles", history.to_frame())
    return written


def write_xyz(path: str | Path, history: StateHistory) -> Path:
    """Write snapshots as extended XYZ frames (one frame per state).

    Columns per particle: ``id x y vx vy angle``. The comment line
    carries the periodic lattice so viewers can draw the box.
    """

    path = _artifact_path(Path(path).parent, Path(path).name)
    with path.open("w", encoding="utf-8") as fh:
        for state in history:
            L = state.side_length
            fh.write(f"{len(state)}\n")
            fh.write(
                f'Lattice="{L} 0.0 0.0 0.0 {L} 0.0 0.0 0.0 1.0" '
                f"Properties=id:I:1:pos:R:2:velo:R:2:angle:R:1 step={state.step}\n"
            )
            for p in state.particle_states:
                vx = p.speed * np.cos(p.angle)
                vy = p.speed * np.sin(p.angle)
                fh.write(f"{p.id} {p.x:.8f} {p.y:.8f} {vx:.8f} {vy:.8f} {p.angle:.8f}\n")
    return path


def load_particles(path: str | Path, speed: float = 1.0) -> List[Particle]:
    """Read particles from a CSV with ``x, y, angle`` and optional ``speed``/``id``.

    Containment is not checked here; :class:`offlattice.space.Space`
    does that when the particles are placed in a domain.
    """

    df = pd.read_csv(path)
    missing = [col for col in ("x", "y", "angle") if col not in df.columns]
    if missing:
        raise ValueError(f"Particle file {path} is missing columns: {', '.join(missing)}")
    if df[["x", "y", "angle"]].isna().any().any():
        raise ValueError(f"Particle file {path} has empty x/y/angle values.")

    speeds = df["speed"] if "speed" in df.columns else pd.Series(speed, index=df.index)
    ids = df["id"] if "id" in df.columns else pd.Series(range(len(df)), index=df.index)
    return [
        Particle(x=float(x), y=float(y), angle=float(a), speed=float(v), id=int(i))
        for x, y, a, v, i in zip(df["x"], df["y"], df["angle"], speeds, ids)
    ]


def _git_revision() -> str | None:
    """Commit of the working tree, or ``None`` outside a git checkout."""

    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"], capture_output=True, text=True, check=False
        )
    except FileNotFoundError:  # pragma: no cover - git not installed
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def save_run_metadata(out_dir: str | Path, config: Mapping[str, Any], extra: Mapping[str, Any] | None = None) -> Path:
    """Write a JSON summary of the run configuration and outcomes."""

    payload = {
        "seed": config.get("seed"),
        "config": config,
        "git_commit": _git_revision(),
    }
    if extra:
        payload.update(extra)
    path = _artifact_path(out_dir, "run.json")
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, default=str)
    return path


__all__ = [
    "save_table",
    "save_history",
    "write_xyz",
    "load_particles",
    "save_run_metadata",
]
