"""Domain enumerations for the forecast pipeline."""

from .enums import (
    AlertSeverity,
    DataKind,
    FailureKind,
    IconCategory,
    PipelineState,
    ProviderKind,
    TemperatureUnit,
)

__all__ = [
    "AlertSeverity",
    "DataKind",
    "FailureKind",
    "IconCategory",
    "PipelineState",
    "ProviderKind",
    "TemperatureUnit",
]
