"""Load rate and component rule documents into immutable snapshots."""

from __future__ import annotations

import json
import logging
import threading
from decimal import Decimal
from pathlib import Path
from typing import Any

import pydantic

from wage_compliance.errors import ConfigurationError, ConfigurationLoadError
from wage_compliance.rates.component_rules import ComponentRule, ComponentRuleSet
from wage_compliance.rates.schema import ComponentRulesDocument, RateDocument
from wage_compliance.rates.snapshot import (
    AccommodationOffsetRule,
    RateBand,
    RatePeriod,
    RateSnapshot,
)
from wage_compliance.types import AllowanceType, OffsetType

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_RATES_PATH = DATA_DIR / "nmw_rates.json"
DEFAULT_COMPONENT_RULES_PATH = DATA_DIR / "component_rules.json"


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationLoadError(str(path), f"cannot read file ({exc})") from exc
    try:
        return json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise ConfigurationLoadError(str(path), f"invalid JSON ({exc})") from exc


def snapshot_from_dict(
    data: Any,
    source: str = "<memory>",
    source_mtime_ns: int | None = None,
) -> RateSnapshot:
    """Validate a rate document and build a snapshot from it.

    Raises:
        ConfigurationLoadError: If the document does not match the schema
    """
    try:
        document = RateDocument.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigurationLoadError(source, str(exc)) from exc

    periods = tuple(
        RatePeriod(
            effective_from=period.effective_from,
            effective_to=period.effective_to,
            description=period.description,
            bands=tuple(
                RateBand(
                    key=key,
                    min_age=band.min_age,
                    max_age=band.max_age,
                    hourly_rate=band.hourly_rate,
                    category=band.category,
                    description=band.description,
                )
                for key, band in period.bands.items()
            ),
        )
        for period in sorted(document.rate_periods, key=lambda p: p.effective_from)
    )
    accommodation_rules = tuple(
        AccommodationOffsetRule(
            effective_from=rule.effective_from,
            effective_to=rule.effective_to,
            daily_limit=rule.daily_limit,
            description=rule.description,
        )
        for rule in sorted(document.accommodation_offsets, key=lambda r: r.effective_from)
    )
    return RateSnapshot(
        version=document.metadata.version,
        periods=periods,
        accommodation_rules=accommodation_rules,
        source=source,
        source_mtime_ns=source_mtime_ns,
    )


def load_snapshot(path: str | Path = DEFAULT_RATES_PATH) -> RateSnapshot:
    """Read and validate a rate document from disk."""
    path = Path(path)
    try:
        mtime_ns = path.stat().st_mtime_ns
    except OSError as exc:
        raise ConfigurationLoadError(str(path), f"cannot stat file ({exc})") from exc
    snapshot = snapshot_from_dict(_read_json(path), source=str(path), source_mtime_ns=mtime_ns)
    logger.info(
        "Loaded rate snapshot %s from %s (%d periods)",
        snapshot.version,
        path,
        len(snapshot.periods),
    )
    return snapshot


def component_rules_from_dict(data: Any, source: str = "<memory>") -> ComponentRuleSet:
    """Validate a component rules document and build a rule set from it."""
    try:
        document = ComponentRulesDocument.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ConfigurationLoadError(source, str(exc)) from exc

    rules: list[ComponentRule] = []
    for section, enum_type in (
        (document.offsets, OffsetType),
        (document.allowances, AllowanceType),
    ):
        for name, config in section.items():
            try:
                component = enum_type(name)
            except ValueError:
                raise ConfigurationLoadError(
                    source, f"unknown {enum_type.__name__} '{name}'"
                ) from None
            rules.append(
                ComponentRule(
                    component=component,
                    category=config.category,
                    treatment=config.treatment,
                    description=config.description,
                    daily_limit=config.daily_limit,
                    basic_rate_ratio=config.basic_rate_ratio,
                    keywords=tuple(config.keywords),
                )
            )

    try:
        return ComponentRuleSet(rules, version=document.metadata.version)
    except ConfigurationError as exc:
        raise ConfigurationLoadError(source, exc.message) from exc


def load_component_rules(path: str | Path = DEFAULT_COMPONENT_RULES_PATH) -> ComponentRuleSet:
    """Read and validate a component rules document from disk."""
    path = Path(path)
    rules = component_rules_from_dict(_read_json(path), source=str(path))
    logger.info("Loaded %d component rules %s from %s", len(rules), rules.version, path)
    return rules


class RateConfigLoader:
    """Serves the current rate snapshot, reloading when the file changes.

    ``current()`` re-stats the file on each call. When the modification
    time differs from the loaded snapshot, a new snapshot is built and the
    reference swapped under a lock. Callers holding an earlier snapshot are
    unaffected. If a reload fails, the error propagates and the previous
    snapshot stays in place.
    """

    def __init__(self, path: str | Path = DEFAULT_RATES_PATH):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._snapshot: RateSnapshot | None = None

    def current(self) -> RateSnapshot:
        """Return the snapshot for the file as it is now."""
        try:
            mtime_ns = self.path.stat().st_mtime_ns
        except OSError as exc:
            raise ConfigurationLoadError(str(self.path), f"cannot stat file ({exc})") from exc

        snapshot = self._snapshot
        if snapshot is not None and snapshot.source_mtime_ns == mtime_ns:
            return snapshot

        with self._lock:
            snapshot = self._snapshot
            if snapshot is None or snapshot.source_mtime_ns != mtime_ns:
                previous = snapshot.version if snapshot else None
                snapshot = load_snapshot(self.path)
                self._snapshot = snapshot
                if previous is not None:
                    logger.info(
                        "Rate configuration reloaded: %s -> %s", previous, snapshot.version
                    )
            return snapshot

    def __call__(self) -> RateSnapshot:
        return self.current()
