"""
Configuration management and loading.

Loads rate schedules from YAML files.
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from lec_billing.core.tariff import DEFAULT_RATE_SCHEDULE, RateSchedule, RateTier


def load_rate_schedule(path: str) -> RateSchedule:
    """Load and validate a rate schedule from a YAML file.

    Strict validation rejects unknown keys so a typo cannot silently bill
    customers at the wrong rate.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated RateSchedule

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Rate schedule file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'currency', 'tiers'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    currency = raw_config.get('currency', DEFAULT_RATE_SCHEDULE.currency)
    if not isinstance(currency, str) or not currency.strip():
        raise ValueError("'currency' must be a non-empty string")

    if 'tiers' not in raw_config:
        raise ValueError("Missing required 'tiers' section")

    tiers_data = raw_config['tiers']
    if not isinstance(tiers_data, list) or not tiers_data:
        raise ValueError("'tiers' must be a non-empty list")

    tiers: List[RateTier] = []
    last = len(tiers_data) - 1
    for index, tier_data in enumerate(tiers_data):
        tiers.append(_parse_tier(tier_data, f"tiers[{index}]", is_last=index == last))

    return RateSchedule(tiers=tuple(tiers), currency=currency)


def _parse_tier(data: Any, path: str, is_last: bool) -> RateTier:
    """Parse and validate a single tier entry.

    Args:
        data: Tier configuration data
        path: Path for error messages
        is_last: Whether this is the top, unbounded tier

    Returns:
        Validated RateTier

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")

    allowed_keys = {'upper_bound', 'rate'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    if 'rate' not in data:
        raise ValueError(f"Missing required 'rate' in {path}")
    rate = _parse_number(data['rate'], f"{path}.rate")
    if rate < 0:
        raise ValueError(f"'rate' in {path} cannot be negative")

    upper_bound: Optional[Decimal] = None
    raw_bound = data.get('upper_bound')
    if is_last:
        if raw_bound is not None:
            raise ValueError(f"Last tier {path} must not set 'upper_bound'")
    else:
        if raw_bound is None:
            raise ValueError(f"Missing required 'upper_bound' in {path}")
        upper_bound = _parse_number(raw_bound, f"{path}.upper_bound")
        if upper_bound <= 0:
            raise ValueError(f"'upper_bound' in {path} must be > 0")

    return RateTier(upper_bound=upper_bound, rate=rate)


def _parse_number(value: Any, path: str) -> Decimal:
    """Convert a YAML scalar into a Decimal without binary float drift."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"'{path}' must be a number")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"'{path}' must be a number")
    if not number.is_finite():
        raise ValueError(f"'{path}' must be finite")
    return number


def rate_schedule_to_dict(schedule: RateSchedule) -> Dict[str, Any]:
    """Serialize a schedule into the structure ``load_rate_schedule`` reads."""
    tiers = []
    for tier in schedule.tiers:
        entry: Dict[str, Any] = {'rate': str(tier.rate)}
        if tier.upper_bound is not None:
            entry['upper_bound'] = str(tier.upper_bound)
        tiers.append(entry)
    return {'currency': schedule.currency, 'tiers': tiers}
