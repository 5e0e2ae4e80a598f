"""
Flow parameters.

Static call arguments that are not discovered on chain: water cooler
metadata, mint settings, attribute keys/values, payment coins. Loaded
from a YAML file; every section has defaults so a missing file still
yields a usable configuration.

Example mizu.yaml:
    water_cooler:
      name: "Mizu"
      description: "First cooler"
      image_url: "https://example.com/cooler.png"
      supply: 25
      treasury: "0xa7f5dc1b23c3b8999f209186c0b4943587123b9293d84aea75a034dc2fb0d3d0"
    mint_settings:
      price: 100000000
      status: 1
      phase: 3
    payment_coin: "0x5f.."
    move_package: "../contracts"
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)


class WaterCoolerParams(BaseModel):
    """Arguments for cooler_factory::buy_water_cooler."""

    name: str = "Mizu Water Cooler"
    description: str = ""
    image_url: str = ""
    supply: int = Field(25, ge=1)
    treasury: str = Field(
        "0xa7f5dc1b23c3b8999f209186c0b4943587123b9293d84aea75a034dc2fb0d3d0",
        description="Address receiving the cooler fee",
    )


class MintSettingsParams(BaseModel):
    """Values written by the set_mint_* calls."""

    price: int = Field(100_000_000, ge=0, description="Mint price in MIST")
    status: int = Field(1, ge=0, le=255)
    phase: int = Field(3, ge=0, le=255)


class AttributesParams(BaseModel):
    """Attribute keys/values and image used by mint_image_attributes and reveal_mint."""

    keys: list[str] = Field(default_factory=lambda: ["background"])
    values: list[str] = Field(default_factory=lambda: ["blue"])
    image_url: str = ""

    @model_validator(mode="after")
    def _same_length(self) -> AttributesParams:
        if len(self.keys) != len(self.values):
            raise ValueError("attribute keys and values must have the same length")
        return self


class FlowParameters(BaseModel):
    """All static parameters for the named flows."""

    water_cooler: WaterCoolerParams = Field(default_factory=WaterCoolerParams)
    mint_settings: MintSettingsParams = Field(default_factory=MintSettingsParams)
    attributes: AttributesParams = Field(default_factory=AttributesParams)
    payment_coin: str | None = Field(
        None, description="Coin object used to pay for the cooler and public mint"
    )
    move_package: Path | None = Field(None, description="Move package to compile for publish")


def load_flow_parameters(path: str | Path) -> FlowParameters:
    """
    Load flow parameters from YAML.

    A missing file yields the defaults; an invalid file raises
    (yaml.YAMLError or pydantic.ValidationError).
    """
    file = Path(path)
    if not file.exists():
        logger.debug(f"No parameters file at {file}, using defaults")
        return FlowParameters()

    with file.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{file} must contain a mapping")
    return FlowParameters.model_validate(data)
