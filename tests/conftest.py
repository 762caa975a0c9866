"""
Pytest configuration and shared fixtures for the OASIS analysis tests.
"""

import matplotlib

matplotlib.use("Agg")

import arviz as az
import numpy as np
import pandas as pd
import pytest

from oasis_analysis import BayesianAnalyzer, DataCleaner


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (real MCMC sampling)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests by default unless --run-slow is passed."""
    if config.getoption("--run-slow"):
        return

    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def make_oasis_frame(n=200, seed=0):
    """Synthetic OASIS-like records: dementia rises with Age and falls with MMSE."""
    rng = np.random.default_rng(seed)

    age = rng.uniform(60, 95, n).round()
    mmse = np.clip(rng.normal(26, 3.5, n), 10, 30).round()
    nwbv = np.clip(0.85 - 0.003 * (age - 60) + rng.normal(0, 0.02, n), 0.6, 0.9)

    age_z = (age - age.mean()) / age.std(ddof=1)
    mmse_z = (mmse - mmse.mean()) / mmse.std(ddof=1)
    p = 1 / (1 + np.exp(-(-0.4 + 0.8 * age_z - 1.8 * mmse_z)))
    dementia = rng.random(n) < p

    cdr = np.where(dementia, rng.choice([0.5, 1.0, 2.0], n), 0.0)
    sex = rng.choice(["M", "F"], n)

    return pd.DataFrame({
        "ID": [f"OAS1_{i:04d}" for i in range(n)],
        "M/F": sex,
        "Hand": "R",
        "Age": age,
        "Educ": rng.integers(1, 6, n).astype(float),
        "MMSE": mmse,
        "CDR": cdr,
        "eTIV": rng.normal(1500, 150, n),
        "nWBV": nwbv,
    })


@pytest.fixture
def raw_df():
    """Raw records with a few missing values sprinkled in."""
    df = make_oasis_frame()
    df.loc[[3, 17], "MMSE"] = np.nan
    df.loc[[5], "CDR"] = np.nan
    df.loc[[8], "nWBV"] = np.nan
    df.loc[[11], "Educ"] = np.nan  # column outside the model
    return df


@pytest.fixture
def oasis_csv(tmp_path, raw_df):
    path = tmp_path / "merged_oasis_data.csv"
    raw_df.to_csv(path, index=False)
    return str(path)


@pytest.fixture
def clean_df(raw_df):
    return DataCleaner().clean_dataset(raw_df)


@pytest.fixture
def fake_idata():
    """Posterior draws with known location, built without sampling."""
    rng = np.random.default_rng(1)
    shape = (2, 500)
    return az.from_dict(posterior={
        "Intercept": rng.normal(-0.4, 0.1, shape),
        "Age_scaled": rng.normal(0.8, 0.1, shape),
        "MMSE_scaled": rng.normal(-1.8, 0.1, shape),
    })


@pytest.fixture
def fitted_analyzer(clean_df, fake_idata):
    analyzer = BayesianAnalyzer(clean_df)
    analyzer.idata = fake_idata
    return analyzer
