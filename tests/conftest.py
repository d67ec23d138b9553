import numpy as np
import pandas as pd
import pytest
import yaml
import xarray as xr


N_SAMPLES = 60
N_PROBES = 12


def make_probe_ids(n=N_PROBES):
    return [f"cg{i:08d}" for i in range(n)]


def make_aligned(n_samples=N_SAMPLES, n_probes=N_PROBES, seed=0):
    """Aligned (sample, probe) matrix whose label depends linearly on the first probes."""
    rng = np.random.default_rng(seed)
    beta = rng.uniform(0.0, 1.0, size=(n_samples, n_probes))
    age = 20.0 + 60.0 * beta[:, 0] + 10.0 * beta[:, 1] + rng.normal(0.0, 1.0, n_samples)
    return xr.DataArray(
        beta,
        dims=("sample", "probe"),
        coords={
            "sample": [f"GSM{i:04d}" for i in range(n_samples)],
            "probe": make_probe_ids(n_probes),
            "label": ("sample", age),
        },
    )


@pytest.fixture
def aligned():
    return make_aligned()


@pytest.fixture
def study_inputs(tmp_path):
    """Raw study inputs on disk and the matching configuration file.

    The matrix is stored probes x samples, matrix sample ids differ in case and
    whitespace from the metadata ids, and two samples have no age.
    """
    rng = np.random.default_rng(1)
    data_dir = tmp_path / "data"
    data_dir.mkdir()

    probe_ids = make_probe_ids()
    sample_ids = [f" gsm{i:04d} " for i in range(N_SAMPLES)]
    beta = rng.uniform(0.0, 1.0, size=(N_SAMPLES, N_PROBES))
    age = 20.0 + 60.0 * beta[:, 0] + 10.0 * beta[:, 1]
    np.save(data_dir / "beta.npy", beta.T)
    (data_dir / "probe_ids.txt").write_text("\n".join(probe_ids) + "\n")
    (data_dir / "sample_ids.txt").write_text("\n".join(sample_ids) + "\n")

    metadata = pd.DataFrame({"sample_id": [f"GSM{i:04d}" for i in range(N_SAMPLES)], "age": age})
    metadata.loc[[3, 7], "age"] = np.nan
    metadata.to_csv(data_dir / "metadata.csv", index=False)

    sets_dir = tmp_path / "probe_sets"
    sets_dir.mkdir()
    (sets_dir / "first_half.txt").write_text("# first probes\n" + "\n".join(probe_ids[:6]) + "\n")
    (sets_dir / "absent.txt").write_text("cg99999998\ncg99999999\n")

    config = {
        "data": {
            "features_path": "data/beta.npy",
            "probe_ids_path": "data/probe_ids.txt",
            "sample_ids_path": "data/sample_ids.txt",
            "metadata_path": "data/metadata.csv",
        },
        "probe_sets": {
            "all_probes": "all",
            "absent": "probe_sets/absent.txt",
            "first_half": "probe_sets/first_half.txt",
        },
        "training": {
            "max_epochs": 4,
            "batch_size": 16,
            "hidden_dims": [8],
            "patience": 3,
            "device": "cpu",
        },
        "split": {"train": 0.7, "valid": 0.15, "test": 0.15, "seed": 42},
    }
    config_path = tmp_path / "study.yaml"
    config_path.write_text(yaml.safe_dump(config, sort_keys=False))
    return config_path
