from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class AnalysisSettingsModel(BaseModel):
    min_samples: int = 6
    outlier_multiple: float = 3.0
    edge_threshold: float = 0.05
    tertiles: List[float] = Field(default_factory=lambda: [0.33, 0.66])
    max_box_groups: int = 20
    top_occupations: int = 6
    histogram_bins: int = 12


class FilterSpecModel(BaseModel):
    countries: List[str] = Field(default_factory=list)
    gender: Optional[str] = None
    occupation: Optional[str] = None
    age_groups: List[str] = Field(default_factory=list)
    settings: AnalysisSettingsModel = Field(default_factory=AnalysisSettingsModel)
