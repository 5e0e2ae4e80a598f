"""
Mizu contract stages and the named flows built from them.
"""

from .cooler import BuyWaterCooler, InitWaterCooler
from .deploy import PublishPackage
from .flows import FLOWS, Flow, get_flow
from .mint import (
    AddToMintWarehouse,
    ClaimMint,
    CreateWhitelistTicket,
    MintImageAttributes,
    PublicMint,
    RevealMint,
    SetMintSettings,
)

__all__ = [
    "FLOWS",
    "Flow",
    "get_flow",
    "PublishPackage",
    "BuyWaterCooler",
    "InitWaterCooler",
    "SetMintSettings",
    "AddToMintWarehouse",
    "CreateWhitelistTicket",
    "PublicMint",
    "MintImageAttributes",
    "RevealMint",
    "ClaimMint",
]
