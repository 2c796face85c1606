import warnings
from pathlib import Path

import numpy as np
import pytest

from offlattice.config import ConfigError, SimulationConfig, default_config, load_config


def test_load_config_overrides(tmp_path: Path):
    cfg_path = tmp_path / "small.yaml"
    cfg_path.write_text("""
space:
  N: 10
simulation:
  iterations: 5
""")

    cfg = load_config(str(cfg_path), [("simulation.eta", 1.5)])
    assert cfg["space"]["N"] == 10
    assert cfg["simulation"]["iterations"] == 5
    assert cfg["simulation"]["eta"] == 1.5
    # Untouched defaults survive the merge.
    assert cfg["simulation"]["M"] == 20


def test_simulation_config_from_dict(tmp_path: Path):
    cfg_path = tmp_path / "vicsek.yaml"
    cfg_path.write_text(
        """
seed: 42
space:
  L: 7.0
  N: 300
  speed: 0.03
simulation:
  iterations: 100
  eta: 2.0
  M: 7
  R: 1.0
noise:
  kind: uniform
"""
    )

    sim = SimulationConfig.from_dict(load_config(cfg_path))
    assert sim.iterations == 100
    assert sim.eta == 2.0
    assert sim.m == 7
    assert sim.side_length == 7.0
    assert sim.n_particles == 300
    assert sim.seed == 42
    assert sim.cell_size == pytest.approx(1.0)
    assert sim.include_self and sim.inclusive_radius


def test_load_config_invalid_raises(tmp_path: Path):
    cfg_path = tmp_path / "bad.yaml"
    cfg_path.write_text("""
simulation:
  iterations: 0
""")

    with pytest.raises(ConfigError):
        load_config(str(cfg_path))


def test_grid_too_fine_for_radius(tmp_path: Path):
    cfg_path = tmp_path / "grid.yaml"
    cfg_path.write_text("""
space:
  L: 10.0
simulation:
  M: 11
  R: 1.0
""")

    with pytest.raises(ConfigError):
        load_config(cfg_path)


def test_missing_value_is_reported():
    cfg = default_config()
    cfg["simulation"]["eta"] = None
    with pytest.raises(ConfigError, match="simulation.eta"):
        SimulationConfig.from_dict(cfg)

    del cfg["space"]
    with pytest.raises(ConfigError, match="space"):
        SimulationConfig.from_dict(cfg)

    with pytest.raises(ConfigError):
        SimulationConfig.from_dict(None)  # type: ignore[arg-type]


def test_non_numeric_value_is_config_error():
    cfg = default_config()
    cfg["simulation"]["M"] = "many"
    with pytest.raises(ConfigError):
        SimulationConfig.from_dict(cfg)


@pytest.mark.parametrize(
    "field, value",
    [
        ("iterations", 0),
        ("eta", -0.1),
        ("m", 0),
        ("side_length", 0.0),
        ("n_particles", -1),
        ("speed", -1.0),
        ("radius", -0.5),
        ("dt", 0.0),
        ("save_every", 0),
        ("noise_kind", "cauchy"),
        ("iterations", 2.5),
        ("m", 2.5),
        ("n_particles", 3.5),
        ("save_every", 1.5),
        ("iterations", "10"),
        ("save_every", True),
    ],
)
def test_simulation_config_rejects(field, value):
    params = dict(iterations=10, eta=0.1, m=5, side_length=10.0, n_particles=10, speed=0.1)
    params[field] = value
    with pytest.raises(ConfigError):
        SimulationConfig(**params)


def test_simulation_config_is_frozen():
    sim = SimulationConfig(iterations=1, eta=0.0, m=1, side_length=1.0, n_particles=1, speed=0.1)
    with pytest.raises(AttributeError):
        sim.eta = 1.0  # type: ignore[misc]


def test_whole_float_counts_become_ints():
    sim = SimulationConfig(iterations=4.0, eta=0.1, m=np.int64(5), side_length=10.0, n_particles=10.0, speed=0.1)
    assert sim.iterations == 4 and isinstance(sim.iterations, int)
    assert isinstance(sim.m, int)
    assert sim.to_dict()["n_particles"] == 10


def test_fractional_iterations_in_mapping_is_config_error():
    cfg = default_config()
    cfg["simulation"]["iterations"] = 2.5
    with pytest.raises(ConfigError, match="iterations"):
        SimulationConfig.from_dict(cfg)


def test_large_step_warns(tmp_path: Path):
    cfg_path = tmp_path / "fast.yaml"
    cfg_path.write_text("""
space:
  speed: 2.0
""")

    with pytest.warns(RuntimeWarning):
        load_config(cfg_path)


def test_default_step_does_not_warn(tmp_path: Path):
    cfg_path = tmp_path / "empty.yaml"
    cfg_path.write_text("")
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        cfg = load_config(cfg_path)
    assert cfg == default_config()


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_non_mapping_file(tmp_path: Path):
    cfg_path = tmp_path / "list.yaml"
    cfg_path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigError):
        load_config(cfg_path)


def test_invalid_sweep(tmp_path: Path):
    cfg_path = tmp_path / "sweep.yaml"
    cfg_path.write_text("""
sweep:
  tail: 0.0
""")
    with pytest.raises(ConfigError):
        load_config(cfg_path)
