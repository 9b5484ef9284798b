"""Distribution-utility service configuration.

Set once at initialisation and never mutated.  Field names are snake_case;
the camelCase keys used by the external server properties
(``distributionutility.distributionUtilityService.<key>``) are accepted as
aliases, so a parsed properties map can be validated directly.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

from distribution_utility.errors import ConfigurationError

PROPERTY_PREFIX = "distributionutility.distributionUtilityService."


class DistributionUtilityConfig(BaseModel):
    """Fee switches, capacity-assessment parameters and fee rates."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # --- Fee switches ---
    use_capacity_fee: bool = Field(
        default=False, alias="useCapacityFee",
        description="Bill brokers for their share of confirmed load peaks",
    )
    use_meter_fee: bool = Field(
        default=False, alias="useMeterFee",
        description="Charge a per-meter fee by customer size class every tick",
    )
    use_transport_fee: bool = Field(
        default=False, alias="useTransportFee",
        description="Charge per kWh delivered to each broker's customers every tick",
    )

    # --- Capacity assessment ---
    assessment_interval: int = Field(
        default=24, ge=1, alias="assessmentInterval",
        description="Length of each assessment window (timeslots)",
    )
    assessment_count: int = Field(
        default=1, ge=1, alias="assessmentCount",
        description="Number of peaks billed per assessment window",
    )
    std_coefficient: float = Field(
        default=1.2, ge=0, alias="stdCoefficient",
        description="Threshold = mean + stdCoefficient × sigma of total usage magnitude",
    )
    fee_per_point: float = Field(
        default=180.0, ge=0, alias="feePerPoint",
        description="Capacity fee per kWh of peak excess above the threshold",
    )
    record_zero_assessments: bool = Field(
        default=True, alias="recordZeroAssessments",
        description="Post zero-kWh capacity transactions to every retail broker "
                    "when a billed peak does not exceed the threshold",
    )

    # --- Distribution rates ---
    m_small: float = Field(default=0.12, ge=0, alias="mSmall", description="Meter fee per small customer")
    m_large: float = Field(default=0.18, ge=0, alias="mLarge", description="Meter fee per large customer")
    transport_rate: float = Field(
        default=0.0, ge=0, alias="transportRate",
        description="Transport fee per delivered kWh (default flat rate schedule)",
    )

    @model_validator(mode="after")
    def _count_fits_interval(self) -> "DistributionUtilityConfig":
        if self.assessment_count > self.assessment_interval:
            raise ValueError(
                f"assessment_count ({self.assessment_count}) cannot exceed "
                f"assessment_interval ({self.assessment_interval})"
            )
        return self

    @classmethod
    def from_properties(
        cls,
        properties: Mapping[str, Any],
        prefix: str = PROPERTY_PREFIX,
    ) -> "DistributionUtilityConfig":
        """Build a config from a string-keyed properties map.

        Keys may carry ``prefix``; values may be strings (``"true"``, ``"24"``),
        which pydantic coerces.  Unprefixed unknown keys belong to other
        services and are ignored; an unknown key carrying ``prefix`` raises
        ``ConfigurationError``.
        """
        known = set(cls.model_fields)
        known.update(f.alias for f in cls.model_fields.values() if f.alias)

        data: dict[str, Any] = {}
        unknown: list[str] = []
        for key, value in properties.items():
            if prefix and key.startswith(prefix):
                name = key[len(prefix):]
                if name not in known:
                    unknown.append(key)
                    continue
            else:
                name = key
            data[name] = value
        if unknown:
            raise ConfigurationError(f"unknown distribution utility properties: {sorted(unknown)}")
        return cls.model_validate(data)
