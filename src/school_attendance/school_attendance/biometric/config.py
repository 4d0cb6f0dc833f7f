"""Biometric configuration.

Frozen dataclasses built from the ``BIOMETRIC`` dict of the active settings
module (see ``config/``), validated on construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..core.constants import (
    DEFAULT_DISTANCE_THRESHOLD,
    DEFAULT_HEALTH_TIMEOUT,
    DEFAULT_RETRY_FAILED_HOURS,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SERVICE_TIMEOUT,
)


@dataclass(frozen=True)
class MatchThresholds:
    """Confidence bands (percent). Below ``low`` a match is rejected."""

    high: float = 90.0
    medium: float = 80.0
    low: float = 60.0

    def __post_init__(self):
        if not 0 <= self.low <= self.medium <= self.high <= 100:
            raise ValueError(
                f"thresholds must satisfy 0 <= low <= medium <= high <= 100, got {self.low}/{self.medium}/{self.high}"
            )


@dataclass(frozen=True)
class ImageRules:
    max_size_mb: float = 5
    allowed_formats: tuple[str, ...] = ("jpeg", "jpg", "png")

    @property
    def max_bytes(self) -> int:
        return int(self.max_size_mb * 1024 * 1024)


@dataclass(frozen=True)
class BiometricSettings:
    enabled: bool = False
    service_url: str = "http://localhost:8001"
    service_timeout: float = DEFAULT_SERVICE_TIMEOUT
    health_timeout: float = DEFAULT_HEALTH_TIMEOUT
    thresholds: MatchThresholds = field(default_factory=MatchThresholds)
    distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD
    search_limit: int = DEFAULT_SEARCH_LIMIT
    auto_enroll: bool = True
    retry_failed_hours: int = DEFAULT_RETRY_FAILED_HOURS
    max_retries: int = 3
    photo_base_url: Optional[str] = None
    image: ImageRules = field(default_factory=ImageRules)

    def __post_init__(self):
        if self.service_timeout <= 0 or self.health_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.search_limit < 1:
            raise ValueError(f"search_limit must be >= 1, got {self.search_limit}")
        if self.retry_failed_hours < 0:
            raise ValueError(f"retry_failed_hours must be >= 0, got {self.retry_failed_hours}")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "BiometricSettings":
        data = dict(data or {})
        thresholds = dict(data.get("thresholds") or {})
        enrollment = dict(data.get("enrollment") or {})
        image = dict(data.get("image") or {})

        return cls(
            enabled=bool(data.get("enabled", False)),
            service_url=str(data.get("service_url") or cls.service_url).rstrip("/"),
            service_timeout=float(data.get("service_timeout", DEFAULT_SERVICE_TIMEOUT)),
            health_timeout=float(data.get("health_timeout", DEFAULT_HEALTH_TIMEOUT)),
            thresholds=MatchThresholds(
                high=float(thresholds.get("match_high", 90.0)),
                medium=float(thresholds.get("match_medium", 80.0)),
                low=float(thresholds.get("match_low", 60.0)),
            ),
            distance_threshold=float(data.get("distance_threshold", DEFAULT_DISTANCE_THRESHOLD)),
            search_limit=int(data.get("search_limit", DEFAULT_SEARCH_LIMIT)),
            auto_enroll=bool(enrollment.get("auto_enroll", True)),
            retry_failed_hours=int(enrollment.get("retry_failed_hours", DEFAULT_RETRY_FAILED_HOURS)),
            max_retries=int(enrollment.get("max_retries", 3)),
            photo_base_url=(data.get("photo_base_url") or None),
            image=ImageRules(
                max_size_mb=float(image.get("max_size_mb", 5)),
                allowed_formats=tuple(str(f).lower() for f in image.get("allowed_formats", ("jpeg", "jpg", "png"))),
            ),
        )
