"""Tests for rate and component rule configuration loading."""

import json
import os
from datetime import date
from decimal import Decimal

import pytest

from tests.conftest import rate_document
from wage_compliance.errors import ConfigurationError, ConfigurationLoadError
from wage_compliance.rates.loader import (
    RateConfigLoader,
    component_rules_from_dict,
    load_component_rules,
    load_snapshot,
    snapshot_from_dict,
)
from wage_compliance.types import AllowanceType, OffsetType, Treatment


def write_json(path, data) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


class TestBundledConfiguration:
    """Test the configuration files shipped with the package."""

    def test_bundled_rates_load(self):
        """The bundled rate file is valid and ordered oldest first."""
        snapshot = load_snapshot()

        assert snapshot.version == "2026.04"
        assert [p.effective_from for p in snapshot.periods] == sorted(
            p.effective_from for p in snapshot.periods
        )
        assert snapshot.source_mtime_ns is not None

    def test_rates_are_decimals(self):
        """Rates are parsed as exact decimals, not floats."""
        snapshot = load_snapshot()
        rate = snapshot.periods[0].bands[0].hourly_rate

        assert isinstance(rate, Decimal)

    def test_bundled_component_rules_load(self):
        """Every offset and allowance type has a rule."""
        rules = load_component_rules()

        assert len(rules) == len(OffsetType) + len(AllowanceType)
        assert rules.rule_for(AllowanceType.TIPS).treatment == Treatment.FULL_EXCLUSION
        assert rules.rule_for(AllowanceType.OVERTIME).basic_rate_ratio == Decimal("0.67")
        assert rules.rule_for(OffsetType.UNIFORM).treatment == Treatment.REDUCES_PAY


class TestRateDocumentValidation:
    """Test that malformed rate documents are rejected."""

    def test_minimal_document(self):
        """A small valid document builds a snapshot."""
        snapshot = snapshot_from_dict(rate_document())

        assert snapshot.version == "test.1"
        assert snapshot.periods[0].apprentice_band.hourly_rate == Decimal("6.40")
        assert snapshot.accommodation_rules[0].effective_to is None

    def test_missing_apprentice_band(self):
        """Every period needs an apprentice band."""
        document = rate_document()
        del document["rate_periods"][0]["bands"]["apprentice"]

        with pytest.raises(ConfigurationLoadError):
            snapshot_from_dict(document)

    def test_overlapping_age_bands(self):
        """Age bands within a period must not overlap."""
        document = rate_document()
        document["rate_periods"][0]["bands"]["age_18_20"]["max_age"] = 21

        with pytest.raises(ConfigurationLoadError, match="overlap"):
            snapshot_from_dict(document)

    def test_open_band_below_another(self):
        """An open-ended band cannot sit below another band."""
        document = rate_document()
        document["rate_periods"][0]["bands"]["age_16_17"]["max_age"] = None

        with pytest.raises(ConfigurationLoadError):
            snapshot_from_dict(document)

    def test_negative_rate(self):
        """Rates must not be negative."""
        document = rate_document()
        document["rate_periods"][0]["bands"]["nlw_21_plus"]["hourly_rate"] = "-1"

        with pytest.raises(ConfigurationLoadError):
            snapshot_from_dict(document)

    def test_end_before_start(self):
        """effective_to must come after effective_from."""
        document = rate_document()
        document["rate_periods"][0]["effective_to"] = "2024-04-01"

        with pytest.raises(ConfigurationLoadError):
            snapshot_from_dict(document)

    def test_overlapping_periods(self):
        """A bounded period may not run past the start of the next one."""
        document = rate_document()
        second = json.loads(json.dumps(document["rate_periods"][0]))
        second["effective_from"] = "2025-01-01"
        second["effective_to"] = None
        document["rate_periods"].append(second)

        with pytest.raises(ConfigurationLoadError, match="overlaps"):
            snapshot_from_dict(document)

    def test_unknown_category(self):
        """Band categories are limited to NLW, NMW and APPRENTICE."""
        document = rate_document()
        document["rate_periods"][0]["bands"]["age_16_17"]["category"] = "YOUTH"

        with pytest.raises(ConfigurationLoadError):
            snapshot_from_dict(document)

    def test_load_error_is_configuration_error(self):
        """Load failures are configuration errors with their own code."""
        with pytest.raises(ConfigurationError) as exc_info:
            snapshot_from_dict({"metadata": {"version": "x"}, "rate_periods": []})

        assert exc_info.value.code == "CONFIGURATION_INVALID"

    def test_invalid_json_file(self, tmp_path):
        """Unparseable files raise ConfigurationLoadError."""
        path = tmp_path / "rates.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationLoadError, match="invalid JSON"):
            load_snapshot(path)

    def test_missing_file(self, tmp_path):
        """Missing files raise ConfigurationLoadError."""
        with pytest.raises(ConfigurationLoadError):
            load_snapshot(tmp_path / "missing.json")


class TestRateConfigLoader:
    """Test snapshot caching and reload."""

    def test_returns_same_snapshot_while_unchanged(self, tmp_path):
        """An unchanged file is not reloaded."""
        path = tmp_path / "rates.json"
        write_json(path, rate_document())
        loader = RateConfigLoader(path)

        assert loader.current() is loader.current()

    def test_reloads_when_file_changes(self, tmp_path):
        """A new modification time produces a new snapshot."""
        path = tmp_path / "rates.json"
        write_json(path, rate_document())
        loader = RateConfigLoader(path)
        first = loader.current()

        write_json(path, rate_document(metadata={"version": "test.2"}))
        stat = path.stat()
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
        second = loader.current()

        assert second is not first
        assert second.version == "test.2"
        assert first.version == "test.1"

    def test_failed_reload_raises(self, tmp_path):
        """A broken file surfaces as ConfigurationLoadError on the next read."""
        path = tmp_path / "rates.json"
        write_json(path, rate_document())
        loader = RateConfigLoader(path)
        loader.current()

        path.write_text("{broken", encoding="utf-8")
        stat = path.stat()
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

        with pytest.raises(ConfigurationLoadError):
            loader.current()

    def test_loader_is_callable(self, tmp_path):
        """The loader can be used directly as a snapshot source."""
        path = tmp_path / "rates.json"
        write_json(path, rate_document())

        assert RateConfigLoader(path)().periods[0].effective_from == date(2024, 4, 1)


class TestComponentRules:
    """Test component rule documents and keyword lookup."""

    def test_keyword_lookup(self):
        """Names resolve by exact normalized keyword."""
        rules = load_component_rules()

        assert rules.lookup("Gratuities") == AllowanceType.TIPS
        assert rules.lookup("Time and Half") == AllowanceType.OVERTIME
        assert rules.lookup("  housing ") == OffsetType.ACCOMMODATION
        assert rules.lookup("tronc") == AllowanceType.TRONC

    def test_unknown_keyword(self):
        """Unknown names do not guess."""
        rules = load_component_rules()

        assert rules.lookup("mileage claim") is None
        assert rules.lookup("tip") is None

    def test_missing_rule_rejected(self):
        """Every component type must have a rule."""
        rules = load_component_rules()
        document = {
            "metadata": {"version": "x"},
            "offsets": {
                rule.component.value: {
                    "category": rule.category,
                    "treatment": rule.treatment.value,
                    "daily_limit": str(rule.daily_limit) if rule.daily_limit is not None else None,
                }
                for rule in rules
                if isinstance(rule.component, OffsetType)
            },
            "allowances": {"tips": {"category": "excluded", "treatment": "full_exclusion"}},
        }

        with pytest.raises(ConfigurationLoadError, match="bonus"):
            component_rules_from_dict(document)

    def test_basic_rate_only_requires_ratio(self):
        """A basic_rate_only rule without a ratio is rejected."""
        document = {
            "metadata": {"version": "x"},
            "offsets": {},
            "allowances": {"overtime": {"category": "included", "treatment": "basic_rate_only"}},
        }

        with pytest.raises(ConfigurationLoadError):
            component_rules_from_dict(document)

    def test_unknown_component_rejected(self):
        """Rules for unknown component types are rejected."""
        document = {
            "metadata": {"version": "x"},
            "offsets": {"parking": {"category": "excluded", "treatment": "reduces_pay"}},
            "allowances": {},
        }

        with pytest.raises(ConfigurationLoadError, match="parking"):
            component_rules_from_dict(document)
