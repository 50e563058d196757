"""Tests for the command line interface."""

import json

import pytest

from wage_compliance.cli import WageComplianceCli


def record(worker_id: str, pay: str, age: int = 25) -> dict:
    return {
        "worker": {"worker_id": worker_id, "age": age},
        "pay_period": {
            "period_start": "2024-06-03",
            "period_end": "2024-06-09",
            "total_hours": "40",
            "total_pay": pay,
        },
    }


@pytest.fixture
def cli() -> WageComplianceCli:
    return WageComplianceCli()


class TestCheckCommand:
    """Test checking records from a file."""

    def test_check_list_of_records(self, cli, tmp_path, capsys):
        """Each record is reported and full results are written."""
        input_path = tmp_path / "records.json"
        output_path = tmp_path / "results.json"
        input_path.write_text(
            json.dumps([record("W1", "480.00"), record("W2", "400.00")]), encoding="utf-8"
        )

        code = cli.run(["check", "--input", str(input_path), "--output", str(output_path)])

        out = capsys.readouterr().out
        assert code == 0
        assert "W1: GREEN" in out
        assert "W2: RED (HIGH)" in out
        assert "Total arrears: £57.60" in out

        results = json.loads(output_path.read_text(encoding="utf-8"))
        assert results["summary"]["total"] == 2
        assert results["summary"]["total_arrears"] == "57.60"
        assert results["results"][1]["compliance"]["rag_status"] == "RED"

    def test_check_single_record(self, cli, tmp_path, capsys):
        input_path = tmp_path / "record.json"
        input_path.write_text(json.dumps(record("W1", "480.00")), encoding="utf-8")

        assert cli.run(["check", "--input", str(input_path)]) == 0
        assert "Checked 1 record(s)" in capsys.readouterr().out

    def test_check_wrapped_requests(self, cli, tmp_path, capsys):
        input_path = tmp_path / "batch.json"
        input_path.write_text(
            json.dumps({"requests": [record("W1", "480.00", age=150)]}), encoding="utf-8"
        )

        assert cli.run(["check", "--input", str(input_path)]) == 0
        assert "[VALIDATION_ERROR]" in capsys.readouterr().out

    def test_check_invalid_record(self, cli, tmp_path, capsys):
        """Malformed records are reported without a traceback."""
        input_path = tmp_path / "bad.json"
        input_path.write_text(json.dumps([{"worker": {"worker_id": "W1"}}]), encoding="utf-8")

        assert cli.run(["check", "--input", str(input_path)]) == 1
        assert "invalid input" in capsys.readouterr().err

    def test_check_missing_file(self, cli, tmp_path, capsys):
        assert cli.run(["check", "--input", str(tmp_path / "missing.json")]) == 1
        assert "cannot read" in capsys.readouterr().err


class TestRateCommands:
    """Test rate lookup and listing."""

    def test_rate_lookup(self, cli, capsys):
        assert cli.run(["rate", "--age", "22", "--date", "2024-06-01"]) == 0

        out = capsys.readouterr().out
        assert "£11.44" in out
        assert "nlw_21_plus" in out

    def test_apprentice_rate_lookup(self, cli, capsys):
        code = cli.run(
            [
                "rate",
                "--age",
                "19",
                "--date",
                "2024-07-01",
                "--apprentice",
                "--apprenticeship-start",
                "2024-01-01",
            ]
        )

        assert code == 0
        assert "APPRENTICE" in capsys.readouterr().out

    def test_rate_lookup_without_band(self, cli, capsys):
        """Lookup failures are reported on stderr."""
        assert cli.run(["rate", "--age", "15", "--date", "2024-06-01"]) == 1
        assert "No rate band" in capsys.readouterr().err

    def test_periods(self, cli, capsys):
        assert cli.run(["periods"]) == 0

        out = capsys.readouterr().out
        assert "2026.04" in out
        assert "nlw_23_plus" in out
        assert "2026-04-01 to open" in out


class TestValidateConfig:
    """Test configuration validation."""

    def test_bundled_configuration_is_valid(self, cli, capsys):
        assert cli.run(["validate-config"]) == 0
        assert "version 2026.04" in capsys.readouterr().out

    def test_broken_rates_file(self, cli, tmp_path, capsys):
        rates = tmp_path / "rates.json"
        rates.write_text("{broken", encoding="utf-8")

        assert cli.run(["validate-config", "--rates", str(rates)]) == 1
        assert "Error:" in capsys.readouterr().err


def test_no_command_prints_help(cli, capsys):
    assert cli.run([]) == 1
    assert "usage" in capsys.readouterr().out
