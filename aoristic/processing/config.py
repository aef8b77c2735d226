"""
Configuration management for aoristic processing.

Settings are read from a JSON file, merged over the defaults and turned into
an AoristicParameters object for the processing pipeline.
"""

import json
import os
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from pathlib import Path
import logging

from .buckets import SUNDAY

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = {
    'monday': 0,
    'tuesday': 1,
    'wednesday': 2,
    'thursday': 3,
    'friday': 4,
    'saturday': 5,
    'sunday': 6,
}


@dataclass
class AoristicParameters:
    """Configuration object for the batch driver."""
    # Python weekday number of day 1 in the bucket numbering (Sunday by default)
    week_start: int = SUNDAY

    # Parallel processing
    parallel_min_rows: int = 5000
    max_workers: Optional[int] = None

    # Diagnostics
    log_summary: bool = True

    def __post_init__(self):
        if self.week_start not in range(7):
            raise ValueError(f"week_start must be between 0 and 6, got {self.week_start}")
        if self.parallel_min_rows < 0:
            raise ValueError(f"parallel_min_rows must be non-negative, got {self.parallel_min_rows}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


def parse_week_start(value) -> int:
    """Accept a weekday number or an English day name."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown week_start day name: {value}")
        return WEEKDAY_NAMES[key]
    return int(value)


class AoristicConfig:
    """Manages aoristic processing configuration settings."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "aoristic_config.json"
        self.default_config = self._get_default_config()
        self.config = self._load_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default processing configuration."""
        return {
            "buckets": {
                "week_start": "sunday"
            },
            "parallel": {
                "min_rows": 5000,
                "max_workers": None
            },
            "diagnostics": {
                "log_summary": True
            }
        }

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or use defaults."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config = json.load(f)
                logger.info(f"Loaded aoristic configuration from {self.config_path}")

                # Merge with defaults to ensure all keys exist
                return self._merge_configs(self.default_config, config)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")
                return self._merge_configs(self.default_config, {})
        else:
            logger.info(f"Config file {self.config_path} not found, using defaults")
            return self._merge_configs(self.default_config, {})

    def _merge_configs(self, default: Dict, user: Dict) -> Dict:
        """Recursively merge user config with defaults."""
        merged = {key: (value.copy() if isinstance(value, dict) else value) for key, value in default.items()}

        for key, value in user.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._merge_configs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def save_config(self) -> None:
        """Save current configuration to file."""
        config_dir = Path(self.config_path).parent
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w') as f:
            json.dump(self.config, f, indent=2)
        logger.info(f"Saved aoristic configuration to {self.config_path}")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """Get a single setting, falling back to default."""
        return self.config.get(section, {}).get(key, default)

    def update_from_parameters(self, params: AoristicParameters) -> None:
        """Copy parameter values back into the configuration dictionary."""
        values = asdict(params)
        reverse_days = {number: name for name, number in WEEKDAY_NAMES.items()}
        self.config["buckets"]["week_start"] = reverse_days[values["week_start"]]
        self.config["parallel"]["min_rows"] = values["parallel_min_rows"]
        self.config["parallel"]["max_workers"] = values["max_workers"]
        self.config["diagnostics"]["log_summary"] = values["log_summary"]

    def to_parameters(self) -> AoristicParameters:
        """
        Build pipeline parameters from the loaded configuration

        Returns:
            AoristicParameters

        Raises:
            ValueError: If a configured value is out of range
        """
        return AoristicParameters(
            week_start=parse_week_start(self.get("buckets", "week_start", "sunday")),
            parallel_min_rows=int(self.get("parallel", "min_rows", 5000)),
            max_workers=self.get("parallel", "max_workers"),
            log_summary=bool(self.get("diagnostics", "log_summary", True)),
        )
