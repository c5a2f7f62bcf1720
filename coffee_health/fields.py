from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd


class Variable(str, Enum):
    """Numeric fields that may be selected at runtime (heatmap outcome, trend variable, network node)."""

    AGE = "Age"
    COFFEE_INTAKE = "Coffee_Intake"
    CAFFEINE_MG = "Caffeine_mg"
    SLEEP_HOURS = "Sleep_Hours"
    BMI = "BMI"
    HEART_RATE = "Heart_Rate"
    STRESS_LEVEL = "Stress_Level"
    PHYSICAL_ACTIVITY_HOURS = "Physical_Activity_Hours"


VariableLike = Union[Variable, str]


def as_variable(value: VariableLike) -> Variable:
    """Resolve a column name to a Variable; unknown names raise ValueError."""
    if isinstance(value, Variable):
        return value
    return Variable(str(value))


NUMERIC_COLUMNS: List[str] = [v.value for v in Variable]

CATEGORICAL_COLUMNS: List[str] = [
    "Gender",
    "Country",
    "Sleep_Quality",
    "Health_Issues",
    "Occupation",
    "Smoking",
    "Alcohol_Consumption",
]

RECORD_COLUMNS: List[str] = [
    "ID",
    "Age",
    "Gender",
    "Country",
    "Coffee_Intake",
    "Caffeine_mg",
    "Sleep_Hours",
    "Sleep_Quality",
    "BMI",
    "Heart_Rate",
    "Stress_Level",
    "Physical_Activity_Hours",
    "Health_Issues",
    "Occupation",
    "Smoking",
    "Alcohol_Consumption",
]

STRESS_LEVEL_MAP: Dict[str, int] = {"Low": 1, "Medium": 2, "High": 3}

AGE_GROUPS: Tuple[str, ...] = ("<30", "30-44", "45-59", "60+")
AGE_DECADE_GROUPS: Tuple[str, ...] = ("<20", "20-29", "30-39", "40-49", "50-59", "60-69", "70+")

COFFEE_LEVELS: Tuple[str, ...] = ("Low", "Medium", "High")
COFFEE_LEVEL_UNKNOWN = "Unknown"

PRIMARY_VARIABLE = Variable.COFFEE_INTAKE

# Outcomes offered on the heatmap and distribution pages.
OUTCOMES: Tuple[Variable, ...] = (Variable.SLEEP_HOURS, Variable.BMI, Variable.HEART_RATE, Variable.STRESS_LEVEL)

NETWORK_VARIABLES: Tuple[Variable, ...] = (
    Variable.COFFEE_INTAKE,
    Variable.CAFFEINE_MG,
    Variable.SLEEP_HOURS,
    Variable.BMI,
    Variable.HEART_RATE,
    Variable.STRESS_LEVEL,
    Variable.PHYSICAL_ACTIVITY_HOURS,
)

ALL_SENTINEL = "All"


def age_group(age: object) -> Optional[str]:
    """Dashboard age bins, closed on the upper bound: <30, 30-44, 45-59, 60+."""
    if age is None or pd.isna(age):
        return None
    a = float(age)
    if a < 30:
        return "<30"
    if a < 45:
        return "30-44"
    if a < 60:
        return "45-59"
    return "60+"


def age_decade_group(age: object) -> Optional[str]:
    """Ten-year bins used by the age trend series only; not interchangeable with age_group."""
    if age is None or pd.isna(age):
        return None
    a = float(age)
    if a < 20:
        return "<20"
    if a < 30:
        return "20-29"
    if a < 40:
        return "30-39"
    if a < 50:
        return "40-49"
    if a < 60:
        return "50-59"
    if a < 70:
        return "60-69"
    return "70+"
