"""
Package deployment stage.

Publishes the Mizu Move package and records the package id together with
the shared objects and capabilities created by the package initializers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mizu.integrations.sui.move import build_package
from mizu.pipeline.errors import UnresolvedDependency
from mizu.pipeline.lookup import PUBLISHED_PACKAGE
from mizu.pipeline.payload import Publish
from mizu.pipeline.stage import Stage

from .common import flow_params

if TYPE_CHECKING:
    from pathlib import Path

    from mizu.pipeline.context import SessionContext

MIZU_NFT = "{packageId}::mizu_nft::MizuNFT"


class PublishPackage(Stage):
    """
    Publish the contracts (admin).

    The payload is either given up front (already compiled) or compiled
    from ``params.move_package`` with the Sui CLI at build time.
    """

    writes = {
        "packageId": PUBLISHED_PACKAGE,
        "cooler_factory.CoolerFactory": "{packageId}::cooler_factory::CoolerFactory",
        "cooler_factory.FactoryOwnerCap": "{packageId}::cooler_factory::FactoryOwnerCap",
        "water_cooler.policy": f"0x2::transfer_policy::TransferPolicy<{MIZU_NFT}>",
        "water_cooler.policy_cap": f"0x2::transfer_policy::TransferPolicyCap<{MIZU_NFT}>",
        "water_cooler.water_cooler_publisher": "0x2::package::Publisher",
    }

    def __init__(
        self,
        publish: Publish | None = None,
        package_path: Path | None = None,
        sui_bin: str = "sui",
    ):
        self._publish = publish
        self._package_path = package_path
        self._sui_bin = sui_bin

    @property
    def name(self) -> str:
        return "publish"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Publish:
        if self._publish is not None:
            return self._publish

        path = self._package_path or flow_params(ctx).move_package
        if path is None:
            raise UnresolvedDependency("move_package", stage=self.name)
        return await build_package(path, sui_bin=self._sui_bin)
