"""
Configuration management for AdLens
"""

import os
import yaml
from pathlib import Path
from typing import Optional, List
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration"""

    # Meta Ads API (Facebook/Instagram)
    META_AD_ACCOUNT_ID: str = os.getenv('META_AD_ACCOUNT_ID', '')  # e.g., "act_123456789"

    # Benchmark persistence (JSON file store)
    BENCHMARK_STORE_PATH: str = os.getenv('ADLENS_BENCHMARK_STORE', 'benchmarks.json')

    # Optional YAML override for ad-name technical token rules
    NAMING_RULES_PATH: str = os.getenv('ADLENS_NAMING_RULES', '')

    # Aggregation defaults
    DEFAULT_AGGREGATION_LEVEL: int = int(os.getenv('ADLENS_DEFAULT_LEVEL', '1'))
    DEFAULT_SORT_KEY: str = os.getenv('ADLENS_DEFAULT_SORT', 'spend')
    DEFAULT_PAGE_SIZE: int = int(os.getenv('ADLENS_PAGE_SIZE', '25'))

    # Meta occasionally returns concatenated purchase counts
    PURCHASE_SANITY_LIMIT: int = 1_000_000
    PURCHASE_FALLBACK_LIMIT: int = 1_000

    # Copy formatting
    COPY_MIN_STRUCTURED_LENGTH: int = 10
    COPY_LONG_TEXT_THRESHOLD: int = 120
    COPY_TWO_SENTENCE_LIMIT: int = 150
    COPY_WRAP_WIDTH: int = 50
    COPY_MAX_LINES: int = 3

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')


# Naming Rules Configuration


@dataclass
class NamingRulesConfig:
    """Regex vocabulary for technical-token filtering of ad names.

    ``obvious`` patterns are dropped at every aggregation level, ``extended``
    patterns only where the broad filter applies. With ``replace`` set, the
    lists replace the built-in vocabulary instead of extending it.
    """
    obvious: List[str] = field(default_factory=list)
    extended: List[str] = field(default_factory=list)
    replace: bool = False


def load_naming_rules(path: Optional[str] = None) -> NamingRulesConfig:
    """
    Load naming-rule overrides from a YAML file.

    File format:
        replace: false
        obvious:
          - '^px\\d+$'
        extended:
          - '^draft$'

    Args:
        path: YAML file path (defaults to Config.NAMING_RULES_PATH)

    Returns:
        NamingRulesConfig instance (empty when no path is configured)

    Raises:
        FileNotFoundError: If the configured file doesn't exist
        ValueError: If the file is not a mapping of pattern lists
    """
    path = path or Config.NAMING_RULES_PATH
    if not path:
        return NamingRulesConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Naming rules file not found at {config_path}")

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Naming rules in {config_path} must be a mapping")

    obvious = raw_config.get('obvious', []) or []
    extended = raw_config.get('extended', []) or []
    for name, patterns in (('obvious', obvious), ('extended', extended)):
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ValueError(f"'{name}' in {config_path} must be a list of regex strings")

    return NamingRulesConfig(
        obvious=obvious,
        extended=extended,
        replace=bool(raw_config.get('replace', False)),
    )
