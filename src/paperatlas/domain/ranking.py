"""
Ranking configuration.

Weights are taken exactly as configured; they are not renormalized, so the
caller decides what total the trending score blends to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

WEIGHT_KEYS = ("recency", "momentum", "cross_list", "churn")


@dataclass(frozen=True)
class RankingWeights:
    recency: float
    momentum: float
    cross_list: float
    churn: float


@dataclass(frozen=True)
class RankingConfig:
    weights: RankingWeights
    version: Optional[str] = None
    recency_half_life_days: float = 14.0
    momentum_window_days: int = 7
    baseline_window_days: int = 14

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RankingConfig":
        """Build from ranking/config.json.

        Raises:
            ValueError: If ``weights`` or one of its four keys is missing, or a
                window length is not positive.
        """
        weights = data.get("weights")
        if not isinstance(weights, dict):
            raise ValueError("ranking config must contain a 'weights' object")
        missing = [key for key in WEIGHT_KEYS if key not in weights]
        if missing:
            raise ValueError(f"ranking weights missing: {', '.join(missing)}")

        return cls(
            weights=RankingWeights(**{key: float(weights[key]) for key in WEIGHT_KEYS}),
            version=data.get("version") or None,
            recency_half_life_days=_positive(data, "recency_half_life_days", 14.0, float),
            momentum_window_days=_positive(data, "momentum_window_days", 7, int),
            baseline_window_days=_positive(data, "baseline_window_days", 14, int),
        )


def _positive(data: Dict[str, Any], key: str, default, cast):
    value = cast(data.get(key, default))
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value
