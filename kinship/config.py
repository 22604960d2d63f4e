"""Service configuration from environment variables (KS_ prefix)."""

from __future__ import annotations

import os

from kinship.family.exclusivity import MIN_ROMANTIC_AGE
from kinship.family.layout import HORIZONTAL_SPACING, VERTICAL_SPACING


class KinshipConfig:
    """Configuration from environment variables (KS_ prefix)."""

    def __init__(self) -> None:
        self.host: str = os.environ.get("KS_HOST", "127.0.0.1")
        self.port: int = int(os.environ.get("KS_PORT", "9810"))
        self.log_level: str = os.environ.get("KS_LOG_LEVEL", "INFO").upper()
        self.horizontal_spacing: float = float(
            os.environ.get("KS_HORIZONTAL_SPACING", str(HORIZONTAL_SPACING))
        )
        self.vertical_spacing: float = float(
            os.environ.get("KS_VERTICAL_SPACING", str(VERTICAL_SPACING))
        )
        self.min_romantic_age: int = int(
            os.environ.get("KS_MIN_ROMANTIC_AGE", str(MIN_ROMANTIC_AGE))
        )
        self.cors_origins: list[str] = [
            o.strip() for o in os.environ.get("KS_CORS_ORIGINS", "*").split(",") if o.strip()
        ]

    def to_dict(self) -> dict:
        return {
            "horizontal_spacing": self.horizontal_spacing,
            "vertical_spacing": self.vertical_spacing,
            "min_romantic_age": self.min_romantic_age,
            "log_level": self.log_level,
        }
