"""
Unit tests for rate schedule loading and validation.

Tests strict validation and error handling for rate schedule files.
"""

import os
import tempfile
from decimal import Decimal

import pytest
import yaml

from lec_billing.config.loader import load_rate_schedule, rate_schedule_to_dict
from lec_billing.core.tariff import DEFAULT_RATE_SCHEDULE


class TestRateScheduleLoading:
    """Test rate schedule loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "rates.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def _valid_config(self) -> dict:
        return {
            "currency": "M",
            "tiers": [
                {"upper_bound": 100, "rate": 1.20},
                {"upper_bound": 300, "rate": 1.50},
                {"rate": 2.00},
            ],
        }

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        schedule = load_rate_schedule(self._write_config(self._valid_config()))

        assert schedule.currency == "M"
        assert len(schedule.tiers) == 3
        assert schedule.tiers[0].upper_bound == Decimal("100")
        assert schedule.tiers[0].rate == Decimal("1.2")
        assert schedule.tiers[1].rate == Decimal("1.5")
        assert schedule.tiers[2].upper_bound is None
        assert schedule.tiers[2].rate == Decimal("2")

    def test_float_rates_have_no_binary_drift(self):
        """Rates like 0.1 load as exact decimals."""
        config = {"tiers": [{"rate": 0.1}]}
        schedule = load_rate_schedule(self._write_config(config))
        assert schedule.tiers[0].rate == Decimal("0.1")

    def test_string_numbers_accepted(self):
        config = {"tiers": [{"upper_bound": "50", "rate": "1.25"}, {"rate": "3"}]}
        schedule = load_rate_schedule(self._write_config(config))
        assert schedule.tiers[0].upper_bound == Decimal("50")
        assert schedule.tiers[0].rate == Decimal("1.25")

    def test_currency_defaults(self):
        config = {"tiers": [{"rate": 1}]}
        schedule = load_rate_schedule(self._write_config(config))
        assert schedule.currency == DEFAULT_RATE_SCHEDULE.currency

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="Rate schedule file not found"):
            load_rate_schedule(os.path.join(self.temp_dir, "missing.yaml"))

    def test_invalid_yaml(self):
        config_path = os.path.join(self.temp_dir, "broken.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("tiers: [\n  - rate: 1\n")
        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_rate_schedule(config_path)

    def test_empty_file(self):
        config_path = os.path.join(self.temp_dir, "empty.yaml")
        open(config_path, 'w').close()
        with pytest.raises(ValueError, match="Configuration file is empty"):
            load_rate_schedule(config_path)

    def test_non_mapping_rejected(self):
        with pytest.raises(ValueError, match="must be a dictionary"):
            load_rate_schedule(self._write_config(["a", "b"]))

    def test_unknown_top_level_key(self):
        config = self._valid_config()
        config["discount"] = 0.1
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_rate_schedule(self._write_config(config))

    def test_missing_tiers(self):
        with pytest.raises(ValueError, match="Missing required 'tiers' section"):
            load_rate_schedule(self._write_config({"currency": "M"}))

    def test_empty_tiers(self):
        with pytest.raises(ValueError, match="'tiers' must be a non-empty list"):
            load_rate_schedule(self._write_config({"tiers": []}))

    def test_blank_currency(self):
        config = self._valid_config()
        config["currency"] = " "
        with pytest.raises(ValueError, match="'currency' must be a non-empty string"):
            load_rate_schedule(self._write_config(config))

    def test_unknown_tier_key(self):
        config = self._valid_config()
        config["tiers"][0]["lower_bound"] = 0
        with pytest.raises(ValueError, match=r"Unknown keys in tiers\[0\]"):
            load_rate_schedule(self._write_config(config))

    def test_missing_rate(self):
        config = self._valid_config()
        del config["tiers"][1]["rate"]
        with pytest.raises(ValueError, match=r"Missing required 'rate' in tiers\[1\]"):
            load_rate_schedule(self._write_config(config))

    def test_negative_rate(self):
        config = self._valid_config()
        config["tiers"][0]["rate"] = -1
        with pytest.raises(ValueError, match="cannot be negative"):
            load_rate_schedule(self._write_config(config))

    def test_non_numeric_rate(self):
        config = self._valid_config()
        config["tiers"][0]["rate"] = "cheap"
        with pytest.raises(ValueError, match=r"'tiers\[0\].rate' must be a number"):
            load_rate_schedule(self._write_config(config))

    def test_boolean_rate_rejected(self):
        config = self._valid_config()
        config["tiers"][0]["rate"] = True
        with pytest.raises(ValueError, match="must be a number"):
            load_rate_schedule(self._write_config(config))

    def test_missing_upper_bound(self):
        config = self._valid_config()
        del config["tiers"][0]["upper_bound"]
        with pytest.raises(ValueError, match=r"Missing required 'upper_bound' in tiers\[0\]"):
            load_rate_schedule(self._write_config(config))

    def test_bounded_last_tier(self):
        config = self._valid_config()
        config["tiers"][2]["upper_bound"] = 1000
        with pytest.raises(ValueError, match="must not set 'upper_bound'"):
            load_rate_schedule(self._write_config(config))

    def test_decreasing_bounds(self):
        config = self._valid_config()
        config["tiers"][1]["upper_bound"] = 50
        with pytest.raises(ValueError, match="strictly increasing"):
            load_rate_schedule(self._write_config(config))

    def test_dict_round_trip_matches_default(self):
        """The exported structure loads back into an equal schedule."""
        config_path = self._write_config(rate_schedule_to_dict(DEFAULT_RATE_SCHEDULE))
        assert load_rate_schedule(config_path) == DEFAULT_RATE_SCHEDULE
