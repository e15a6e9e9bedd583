from __future__ import annotations

import pytest

from generate_synthetic_dataset import make_synthetic_dataset
from quake_fatality_glm.glm_models import fit_model_suite
from quake_fatality_glm.preprocessing import prepare_dataset


@pytest.fixture(scope="session")
def raw_frame():
    return make_synthetic_dataset(n_events=600, seed=42)


@pytest.fixture(scope="session")
def earthquake_csv(raw_frame, tmp_path_factory):
    path = tmp_path_factory.mktemp("data") / "earthquakes.csv"
    raw_frame.to_csv(path, index=False)
    return path


@pytest.fixture(scope="session")
def dataset(earthquake_csv):
    return prepare_dataset(earthquake_csv)


@pytest.fixture(scope="session")
def suite(dataset):
    return fit_model_suite(dataset.frame)
