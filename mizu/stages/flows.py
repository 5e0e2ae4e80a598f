"""
Named flows.

A flow is a named, ordered set of stages plus the actor that normally runs
it. Stages are created fresh for every build so no state leaks between
runs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from mizu.pipeline.executor import Pipeline, PipelineBuilder
from mizu.pipeline.stage import Stage

from .cooler import BuyWaterCooler, InitWaterCooler
from .deploy import PublishPackage
from .mint import (
    AddToMintWarehouse,
    ClaimMint,
    CreateWhitelistTicket,
    MintImageAttributes,
    PublicMint,
    RevealMint,
    SetMintSettings,
)


@dataclass(frozen=True, slots=True)
class Flow:
    """A named stage sequence."""

    name: str
    description: str
    stages: tuple[Callable[[], Stage], ...]
    default_actor: str = "user1"

    def build(self) -> Pipeline:
        builder = PipelineBuilder(self.name)
        for factory in self.stages:
            builder.add(factory())
        return builder.build()


FLOWS: dict[str, Flow] = {
    flow.name: flow
    for flow in (
        Flow(
            "deploy",
            "Publish the Mizu package and record factory, policy and publisher ids",
            (PublishPackage,),
            default_actor="admin",
        ),
        Flow(
            "water_cooler",
            "Buy a water cooler and initialize it into a kiosk",
            (BuyWaterCooler, InitWaterCooler),
        ),
        Flow(
            "mint_settings",
            "Set mint price, status and phase",
            (SetMintSettings,),
        ),
        Flow(
            "warehouse",
            "Add the minted NFT to the mint warehouse",
            (AddToMintWarehouse,),
        ),
        Flow(
            "whitelist",
            "Create a whitelist ticket",
            (CreateWhitelistTicket,),
        ),
        Flow(
            "public_mint",
            "Public mint, then create attributes/image and reveal",
            (PublicMint, MintImageAttributes, RevealMint),
        ),
        Flow(
            "claim_mint",
            "Claim a revealed mint into the kiosk",
            (ClaimMint,),
        ),
    )
}


def get_flow(name: str) -> Flow:
    """
    Look up a flow by name.

    Raises:
        KeyError: unknown flow
    """
    try:
        return FLOWS[name]
    except KeyError:
        raise KeyError(f"Unknown flow '{name}' (available: {', '.join(FLOWS)})") from None
