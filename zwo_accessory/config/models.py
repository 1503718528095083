"""
Configuration models using Pydantic for validation.

Configuration is optional: every field has a default matching the hardware
this was developed against, and a JSON file only needs the overrides.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from zwo_accessory.protocol.commands import EAF_PRODUCT_ID, EFW_PRODUCT_ID, ZWO_VENDOR_ID


class DeviceConfig(BaseModel):
    """USB ids of the accessories."""

    vendor_id: int = Field(default=ZWO_VENDOR_ID, ge=0, le=0xFFFF, description="USB vendor id")
    focuser_product_id: int = Field(
        default=EAF_PRODUCT_ID, ge=0, le=0xFFFF, description="USB product id of the EAF focuser"
    )
    wheel_product_id: int = Field(
        default=EFW_PRODUCT_ID, ge=0, le=0xFFFF, description="USB product id of the EFW filter wheel"
    )


class PollingConfig(BaseModel):
    """Settle polling configuration."""

    interval_ms: int = Field(
        default=500, ge=10, le=10000, description="Sleep between position polls (ms)"
    )
    wheel_step_attempts: int = Field(
        default=100, ge=1, description="Polls allowed for one filter wheel step to settle"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="WARNING",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    file: Optional[str] = Field(
        default=None,
        description="Log file path (None for console only)"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class SimulatorConfig(BaseModel):
    """In-process device simulator configuration."""

    focuser_position: int = Field(default=25000, ge=0, le=0xFFFF, description="Starting focuser position")
    focuser_max: int = Field(default=60000, ge=1, le=0xFFFF, description="Focuser maximum position")
    focuser_steps_per_poll: int = Field(
        default=130, ge=1, description="Focuser travel between two position polls"
    )
    wheel_slot: int = Field(default=1, ge=1, le=7, description="Starting filter wheel slot")
    wheel_polls_per_step: int = Field(
        default=3, ge=1, description="Polls before a one-slot wheel move settles"
    )
    wheel_lockup_on_jump: bool = Field(
        default=True, description="Lock the wheel up when asked to jump more than one slot"
    )

    @field_validator("focuser_max")
    @classmethod
    def validate_max_above_position(cls, v, info):
        """Ensure the starting position is within the maximum."""
        if "focuser_position" in info.data and info.data["focuser_position"] > v:
            raise ValueError(
                f"focuser_max ({v}) is below focuser_position ({info.data['focuser_position']})"
            )
        return v


class AppConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")  # Raise error on unknown fields

    device: DeviceConfig = Field(default_factory=DeviceConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
