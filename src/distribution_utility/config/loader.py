"""YAML loading for the service configuration."""

from __future__ import annotations

import io
from pathlib import Path

import yaml
from pydantic import ValidationError

from distribution_utility.config.service import DistributionUtilityConfig
from distribution_utility.errors import ConfigurationError

SECTION_KEY = "distribution_utility"


def load_config(source: str | Path | io.StringIO) -> DistributionUtilityConfig:
    """Read a YAML file (or in-memory stream) into a validated config.

    The mapping may be flat or nested under a ``distribution_utility`` key;
    either snake_case or camelCase keys are accepted.  An empty document
    yields the defaults.
    """
    if isinstance(source, io.StringIO):
        data = yaml.safe_load(source)
    else:
        with open(source, encoding="utf-8") as f:
            data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"expected a mapping at the top level, got {type(data).__name__}")
    if isinstance(data.get(SECTION_KEY), dict):
        data = data[SECTION_KEY]

    try:
        return DistributionUtilityConfig.from_properties(data)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
