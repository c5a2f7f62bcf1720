# tests/conftest.py
"""Pytest configuration and shared fixtures for the coffee_health tests."""
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest


def pytest_configure() -> None:
    # Ensure the packages are importable when running tests from repo root without an install.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


COUNTRIES = ["Brazil", "Canada", "Germany"]
OCCUPATIONS = ["Office", "Student", "Healthcare", "Service"]
STRESS = ["Low", "Medium", "High"]


@pytest.fixture
def raw_frame() -> pd.DataFrame:
    """Deterministic raw survey rows as a CSV loader would produce them."""
    rng = np.random.RandomState(0)
    n = 240
    coffee = np.round(rng.uniform(0.0, 6.0, n), 2)
    rows = []
    for i in range(n):
        rows.append(
            {
                "ID": i + 1,
                "Age": int(18 + (i * 7) % 62),
                "Gender": "Female" if i % 2 else "Male",
                "Country": COUNTRIES[i % 3],
                "Coffee_Intake": float(coffee[i]),
                "Caffeine_mg": float(np.round(coffee[i] * 95 + rng.normal(0, 5), 1)),
                "Sleep_Hours": float(np.round(8.0 - 0.4 * coffee[i] + rng.normal(0, 0.3), 2)),
                "Sleep_Quality": ["Good", "Fair", "Poor"][i % 3],
                "BMI": float(np.round(24 + rng.normal(0, 2), 1)),
                "Heart_Rate": float(np.round(65 + 2.5 * coffee[i] + rng.normal(0, 2), 0)),
                "Stress_Level": STRESS[i % 3],
                "Physical_Activity_Hours": float(np.round(rng.uniform(0, 10), 1)),
                "Health_Issues": "None" if i % 4 else "Mild",
                "Occupation": OCCUPATIONS[i % 4],
                "Smoking": i % 5 == 0,
                "Alcohol_Consumption": i % 3 == 0,
            }
        )
    return pd.DataFrame(rows)


@pytest.fixture
def records(raw_frame):
    from coffee_health.data import assign_coffee_levels, normalize

    return assign_coffee_levels(normalize(raw_frame))


@pytest.fixture
def data_ctx(records):
    from coffee_health.aggregates import tertile_thresholds
    from coffee_health.data import default_countries, unique_sorted

    return {
        "files": ["fixture.csv"],
        "records": records,
        "raw_rows": len(records),
        "rejected_rows": 0,
        "thresholds": tertile_thresholds(records),
        "countries": unique_sorted(records, "Country"),
        "occupations": unique_sorted(records, "Occupation"),
        "default_countries": default_countries(records),
    }


@pytest.fixture
def csv_path(tmp_path, raw_frame) -> Path:
    path = tmp_path / "coffee_health.csv"
    frame = raw_frame.copy()
    frame["Coffee_Intake"] = frame["Coffee_Intake"].astype(object)
    frame.loc[3, "Coffee_Intake"] = "n/a"
    frame.to_csv(path, index=False)
    return path
