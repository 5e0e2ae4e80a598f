"""
Configuration for mizu.

- Settings: environment-driven runtime settings
- FlowParameters: static call arguments loaded from YAML
"""

from .flows import (
    AttributesParams,
    FlowParameters,
    MintSettingsParams,
    WaterCoolerParams,
    load_flow_parameters,
)
from .settings import Settings, get_settings, load_settings

__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "FlowParameters",
    "WaterCoolerParams",
    "MintSettingsParams",
    "AttributesParams",
    "load_flow_parameters",
]
