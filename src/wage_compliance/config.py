"""Configuration management for the compliance engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

from wage_compliance.rates.loader import DEFAULT_COMPONENT_RULES_PATH, DEFAULT_RATES_PATH


@dataclass(frozen=True)
class ComplianceThresholds:
    """
    Thresholds used by classification and suggestion generation.

    Attributes:
        excessive_deduction_ratio: Deductions above this share of gross pay
            send a record to manual review. Default 0.50.
        urgent_shortfall_percentage: Shortfalls at or above this percentage
            of the required rate raise an urgent review. Default 20.
        weekly_hours_ceiling: Weekly-equivalent hours above this prompt a
            Working Time Regulations check. Default 48.
        low_margin_per_hour: Compliant pay less than this above the
            required rate is reported as a low margin. Default 0.50.
        negligible_shortfall_per_hour: Shortfalls below this per hour do
            not produce an arrears suggestion. Default 0.01.
        max_worker_age: Upper bound on a plausible worker age. Default 120.
    """

    excessive_deduction_ratio: Decimal = Decimal("0.50")
    urgent_shortfall_percentage: Decimal = Decimal("20")
    weekly_hours_ceiling: Decimal = Decimal("48")
    low_margin_per_hour: Decimal = Decimal("0.50")
    negligible_shortfall_per_hour: Decimal = Decimal("0.01")
    max_worker_age: int = 120

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not Decimal("0") < self.excessive_deduction_ratio <= Decimal("1"):
            raise ValueError("excessive_deduction_ratio must be in (0, 1]")
        if not Decimal("0") < self.urgent_shortfall_percentage <= Decimal("100"):
            raise ValueError("urgent_shortfall_percentage must be in (0, 100]")
        if self.weekly_hours_ceiling <= 0:
            raise ValueError("weekly_hours_ceiling must be positive")
        if self.low_margin_per_hour < 0:
            raise ValueError("low_margin_per_hour must not be negative")
        if self.negligible_shortfall_per_hour < 0:
            raise ValueError("negligible_shortfall_per_hour must not be negative")
        if self.max_worker_age < 16:
            raise ValueError("max_worker_age must be at least 16")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    rates_path: Path
    component_rules_path: Path
    engine_version: str
    host: str
    port: int
    debug: bool
    log_level: str
    batch_max_workers: int | None
    thresholds: ComplianceThresholds = field(default_factory=ComplianceThresholds)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        defaults = ComplianceThresholds()
        thresholds = ComplianceThresholds(
            excessive_deduction_ratio=Decimal(
                os.getenv("WAGE_EXCESSIVE_DEDUCTION_RATIO", str(defaults.excessive_deduction_ratio))
            ),
            urgent_shortfall_percentage=Decimal(
                os.getenv(
                    "WAGE_URGENT_SHORTFALL_PERCENTAGE", str(defaults.urgent_shortfall_percentage)
                )
            ),
            weekly_hours_ceiling=Decimal(
                os.getenv("WAGE_WEEKLY_HOURS_CEILING", str(defaults.weekly_hours_ceiling))
            ),
            low_margin_per_hour=Decimal(
                os.getenv("WAGE_LOW_MARGIN_PER_HOUR", str(defaults.low_margin_per_hour))
            ),
            negligible_shortfall_per_hour=Decimal(
                os.getenv(
                    "WAGE_NEGLIGIBLE_SHORTFALL_PER_HOUR",
                    str(defaults.negligible_shortfall_per_hour),
                )
            ),
            max_worker_age=int(os.getenv("WAGE_MAX_WORKER_AGE", str(defaults.max_worker_age))),
        )

        max_workers = os.getenv("BATCH_MAX_WORKERS")
        return cls(
            rates_path=Path(os.getenv("WAGE_RATES_PATH", str(DEFAULT_RATES_PATH))),
            component_rules_path=Path(
                os.getenv("WAGE_COMPONENT_RULES_PATH", str(DEFAULT_COMPONENT_RULES_PATH))
            ),
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            batch_max_workers=int(max_workers) if max_workers else None,
            thresholds=thresholds,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and server entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
