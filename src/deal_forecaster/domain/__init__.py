"""Domain modules for deal scoring and forecasting."""

from .confidence import Confidence, classify_confidence
from .forecast import ForecastSummary, aggregate_forecast
from .opportunity import Opportunity, ScenarioAdjustment
from .rep_performance import RepPerformance, compute_rep_performance
from .scenario import ScenarioResult, simulate_scenario
from .scoring import ScoredOpportunity, score_opportunity
from .settings import ScoringSettings, default_scoring_settings

__all__ = [
    "Confidence",
    "ForecastSummary",
    "Opportunity",
    "RepPerformance",
    "ScenarioAdjustment",
    "ScenarioResult",
    "ScoredOpportunity",
    "ScoringSettings",
    "aggregate_forecast",
    "classify_confidence",
    "compute_rep_performance",
    "default_scoring_settings",
    "score_opportunity",
    "simulate_scenario",
]
