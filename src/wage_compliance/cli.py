"""Wage Compliance Command Line Interface.

Provides tools for:
- Checking pay records from a JSON file
- Looking up the required rate for an age and date
- Listing configured rate periods
- Validating rate and component rule files

Usage:
    python -m wage_compliance.cli check --input records.json --output results.json
    python -m wage_compliance.cli rate --age 22 --date 2024-06-01
    python -m wage_compliance.cli periods
    python -m wage_compliance.cli validate-config --rates rates.json
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable

import pydantic

from wage_compliance.api.schemas import (
    BatchRequestIn,
    BatchResponseOut,
    CalculationRequestIn,
    CalculationResponseOut,
)
from wage_compliance.calculators.engine import ComplianceEngine
from wage_compliance.calculators.rate_table import RateTable
from wage_compliance.config import configure_logging, get_settings
from wage_compliance.errors import WageComplianceError
from wage_compliance.rates.loader import load_component_rules, load_snapshot


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {s!r} (expected YYYY-MM-DD)")


class WageComplianceCli:
    """Wage Compliance Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="wage-compliance",
            description="UK minimum wage compliance tools",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            default=None,
            help="Logging level (default: $LOG_LEVEL or INFO)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # check command
        check = subparsers.add_parser(
            "check",
            help="Check pay records from a JSON file",
        )
        check.add_argument(
            "--input",
            type=Path,
            required=True,
            help="JSON file with one request, a list of requests, or {\"requests\": [...]}",
        )
        check.add_argument(
            "--output",
            type=Path,
            help="Write full results as JSON to this file",
        )
        self._add_config_arguments(check)

        # rate command
        rate = subparsers.add_parser(
            "rate",
            help="Look up the required hourly rate",
        )
        rate.add_argument("--age", type=int, required=True, help="Worker age in years")
        rate.add_argument("--date", type=parse_date, required=True, help="Pay date (YYYY-MM-DD)")
        rate.add_argument(
            "--apprentice",
            action="store_true",
            help="Worker is an apprentice",
        )
        rate.add_argument(
            "--apprenticeship-start",
            type=parse_date,
            help="Apprenticeship start date (YYYY-MM-DD)",
        )
        self._add_config_arguments(rate)

        # periods command
        periods = subparsers.add_parser(
            "periods",
            help="List configured rate periods",
        )
        self._add_config_arguments(periods)

        # validate-config command
        validate = subparsers.add_parser(
            "validate-config",
            help="Validate the rate and component rule files",
        )
        self._add_config_arguments(validate)

        return parser

    @staticmethod
    def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--rates",
            type=Path,
            help="Rate configuration file (default: $WAGE_RATES_PATH)",
        )
        parser.add_argument(
            "--rules",
            type=Path,
            help="Component rules file (default: $WAGE_COMPONENT_RULES_PATH)",
        )

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        settings = get_settings()
        configure_logging(parsed.log_level or settings.log_level)

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "check": self._cmd_check,
            "rate": self._cmd_rate,
            "periods": self._cmd_periods,
            "validate-config": self._cmd_validate_config,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1
        try:
            return handler(parsed)
        except WageComplianceError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1

    def _paths(self, args: argparse.Namespace) -> tuple[Path, Path]:
        settings = get_settings()
        return (
            args.rates or settings.rates_path,
            args.rules or settings.component_rules_path,
        )

    def _cmd_check(self, args: argparse.Namespace) -> int:
        """Check pay records from a file."""
        try:
            data = json.loads(args.input.read_text(encoding="utf-8"), parse_float=Decimal)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Error: cannot read {args.input}: {e}", file=sys.stderr)
            return 1

        try:
            batch = self._parse_requests(data)
        except pydantic.ValidationError as e:
            print(f"Error: invalid input in {args.input}:\n{e}", file=sys.stderr)
            return 1

        rates_path, rules_path = self._paths(args)
        engine = ComplianceEngine.from_snapshot(
            load_snapshot(rates_path),
            load_component_rules(rules_path),
            thresholds=get_settings().thresholds,
        )
        result = engine.calculate_batch([r.to_domain() for r in batch.requests])
        output = BatchResponseOut.model_validate(result)

        print(f"Checked {result.summary.total} record(s) against rates {result.rates_version}")
        for response in result.results:
            compliance = response.compliance
            line = f"  {compliance.worker_id}: {compliance.rag_status.value}"
            if compliance.severity is not None:
                line += f" ({compliance.severity.value})"
            if compliance.error_code:
                line += f" [{compliance.error_code}]"
            print(f"{line} - {compliance.reason}")

        summary = result.summary
        print(
            f"\nGreen: {summary.green}  Amber: {summary.amber}  Red: {summary.red}  "
            f"Errors: {summary.errors}"
        )
        print(f"Compliance rate: {summary.compliance_rate}%")
        print(f"Total arrears: £{summary.total_arrears}")

        if args.output:
            args.output.write_text(output.model_dump_json(indent=2), encoding="utf-8")
            print(f"\nResults written to {args.output}")
        return 0

    @staticmethod
    def _parse_requests(data: Any) -> BatchRequestIn:
        if isinstance(data, list):
            return BatchRequestIn.model_validate({"requests": data})
        if isinstance(data, dict) and "requests" in data:
            return BatchRequestIn.model_validate(data)
        single = CalculationRequestIn.model_validate(data)
        return BatchRequestIn(requests=[single])

    def _cmd_rate(self, args: argparse.Namespace) -> int:
        """Look up a required rate."""
        rates_path, _ = self._paths(args)
        table = RateTable(load_snapshot(rates_path), max_age=get_settings().thresholds.max_worker_age)
        result = table.get_required_rate(
            args.age,
            args.date,
            is_apprentice=args.apprentice,
            apprenticeship_start=args.apprenticeship_start,
        )
        print(f"Required rate: £{result.hourly_rate}/hour")
        print(f"  Band:     {result.band_key} ({result.category.value})")
        print(f"  Reason:   {result.reason}")
        print(f"  Period:   {result.period_description}")
        return 0

    def _cmd_periods(self, args: argparse.Namespace) -> int:
        """List rate periods."""
        rates_path, _ = self._paths(args)
        table = RateTable(load_snapshot(rates_path))
        print(f"Rate configuration {table.version}")
        print("=" * 40)
        for period in table.rate_history():
            end = period.effective_to.isoformat() if period.effective_to else "open"
            print(f"\n{period.effective_from.isoformat()} to {end}: {period.description}")
            for band in sorted(period.bands, key=lambda b: (b.min_age is None, b.min_age or 0)):
                print(f"  {band.key:<14} £{band.hourly_rate:>6}  {band.description}")
        return 0

    def _cmd_validate_config(self, args: argparse.Namespace) -> int:
        """Validate configuration files."""
        rates_path, rules_path = self._paths(args)
        snapshot = load_snapshot(rates_path)
        print(f"✓ Rates {rates_path}: version {snapshot.version}, {len(snapshot.periods)} periods")
        rules = load_component_rules(rules_path)
        print(f"✓ Component rules {rules_path}: version {rules.version}, {len(rules)} rules")
        return 0


def main() -> int:
    """Main entry point."""
    cli = WageComplianceCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
