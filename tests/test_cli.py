"""Tests for command line interface."""

import json
import subprocess
import sys


def run_cli(*args):
    return subprocess.run(
        [sys.executable, "-m", "poker_tells.cli", *args],
        capture_output=True,
        text=True
    )


class TestCLI:
    """Tests for CLI commands."""

    def test_help(self):
        """Test --help flag."""
        result = run_cli("--help")
        assert result.returncode == 0
        assert "Poker tells" in result.stdout
        assert "evaluate" in result.stdout
        assert "simulate" in result.stdout
        assert "patterns" in result.stdout

    def test_version(self):
        """Test --version flag."""
        result = run_cli("--version")
        assert result.returncode == 0
        assert "0.1.0" in result.stdout

    def test_no_command(self):
        """Test running without command shows help."""
        result = run_cli()
        assert result.returncode == 1
        assert "Poker tells" in result.stdout


class TestEvaluateCommand:
    """Tests for the evaluate command."""

    def test_royal_flush(self):
        """Test evaluating a royal flush."""
        result = run_cli("evaluate", "As", "Ks", "Qs", "Js", "10s")
        assert result.returncode == 0
        assert "ROYAL_FLUSH (0xEDCBA)" in result.stdout

    def test_seven_cards(self):
        """Test evaluating hole cards plus board."""
        result = run_cli("evaluate", "2c", "2d", "2h", "5s", "5d", "9c", "Kh")
        assert result.returncode == 0
        assert "FULL_HOUSE (0x22255)" in result.stdout

    def test_invalid_card(self):
        """Test invalid cards are reported."""
        result = run_cli("evaluate", "Zz")
        assert result.returncode == 1
        assert "Error" in result.stderr


class TestSimulateCommand:
    """Tests for the simulate command."""

    def test_simulate(self, tmp_path):
        """Test a short simulated session."""
        patterns = tmp_path / "patterns.json"
        stats = tmp_path / "stats.csv"
        result = run_cli(
            "simulate", "--rounds", "2", "--seed", "3",
            "--patterns", str(patterns), "--stats-csv", str(stats),
        )
        assert result.returncode == 0, result.stderr
        assert "Rounds: 2" in result.stdout
        assert "AI Stats" in result.stdout
        assert patterns.exists()
        assert stats.exists()

    def test_simulate_with_config(self, tmp_path):
        """Test settings from a config file."""
        config = tmp_path / "config.json"
        config.write_text(json.dumps({
            "pattern_match_threshold": 20.0,
            "pattern_file": str(tmp_path / "from_config.json"),
        }))
        result = run_cli("simulate", "--rounds", "1", "--seed", "1", "--config", str(config))
        assert result.returncode == 0, result.stderr
        assert (tmp_path / "from_config.json").exists()

    def test_invalid_config(self, tmp_path):
        """Test invalid config files are reported."""
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"no_such_setting": 1}))
        result = run_cli("simulate", "--rounds", "1", "--config", str(config))
        assert result.returncode == 1
        assert "Unknown config keys" in result.stderr

    def test_badly_typed_config(self, tmp_path):
        """Test wrongly typed settings are reported without a traceback."""
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"pattern_match_threshold": "big"}))
        result = run_cli("simulate", "--rounds", "1", "--config", str(config))
        assert result.returncode == 1
        assert "pattern_match_threshold must be a number" in result.stderr
        assert "Traceback" not in result.stderr

    def test_missing_config(self, tmp_path):
        """Test missing config files are reported."""
        result = run_cli("simulate", "--config", str(tmp_path / "missing.json"))
        assert result.returncode == 1
        assert "Error" in result.stderr

    def test_negative_rounds(self, tmp_path):
        """Test negative round counts are rejected."""
        result = run_cli("simulate", "--rounds", "-2", "--patterns", str(tmp_path / "p.json"))
        assert result.returncode == 1


class TestPatternsCommand:
    """Tests for the patterns command."""

    def test_show_patterns(self, tmp_path):
        """Test printing a stored pattern file."""
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({
            "version": 1,
            "featureVectorLength": 2,
            "nextId": 2,
            "patterns": [{"id": 1, "centroid": [0.0, 1.0], "count": 3, "weakPassiveCount": 3}],
        }))
        result = run_cli("patterns", str(path))
        assert result.returncode == 0, result.stderr
        assert "ID" in result.stdout

    def test_missing_file(self, tmp_path):
        """Test missing pattern files are reported."""
        result = run_cli("patterns", str(tmp_path / "missing.json"))
        assert result.returncode == 1
        assert "Error" in result.stderr

    def test_incompatible_file(self, tmp_path):
        """Test unsupported versions are reported."""
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"version": 9, "featureVectorLength": 2, "patterns": []}))
        result = run_cli("patterns", str(path))
        assert result.returncode == 1
        assert "version" in result.stderr
