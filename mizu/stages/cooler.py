"""
Water cooler stages (user).

buy_water_cooler creates the user's WaterCooler from the shared factory;
initialize_water_cooler mints the collection into a new kiosk.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mizu.pipeline.payload import MoveFunction, ParamKind, Transaction
from mizu.pipeline.stage import Stage

from .common import PACKAGE, PAYMENT_COIN, flow_params

if TYPE_CHECKING:
    from mizu.pipeline.context import SessionContext

OBJ = ParamKind.OBJECT

BUY_WATER_COOLER = MoveFunction(
    "cooler_factory",
    "buy_water_cooler",
    (OBJ, OBJ, ParamKind.STRING, ParamKind.STRING, ParamKind.STRING, ParamKind.U64, ParamKind.ADDRESS),
)
INITIALIZE_WATER_COOLER = MoveFunction("water_cooler", "initialize_water_cooler", (OBJ, OBJ, OBJ, OBJ))


class BuyWaterCooler(Stage):
    reads = frozenset({PACKAGE, "cooler_factory.CoolerFactory", PAYMENT_COIN})
    writes = {"water_cooler": "{packageId}::water_cooler::WaterCooler"}

    @property
    def name(self) -> str:
        return "buy_water_cooler"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        cooler = flow_params(ctx).water_cooler
        return Transaction.of(
            BUY_WATER_COOLER.call(
                values[PACKAGE],
                values["cooler_factory.CoolerFactory"],
                values[PAYMENT_COIN],
                cooler.name,
                cooler.description,
                cooler.image_url,
                cooler.supply,
                cooler.treasury,
            )
        )


class InitWaterCooler(Stage):
    """Requires water_cooler_cap, registry and collection to be seeded in the user store."""

    reads = frozenset({PACKAGE, "water_cooler", "water_cooler_cap", "registry", "collection"})
    writes = {
        "mizu_kiosk": "0x2::kiosk::Kiosk",
        "mizu_nft": "{packageId}::mizu_nft::MizuNFT",
    }

    @property
    def name(self) -> str:
        return "initialize_water_cooler"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        return Transaction.of(
            INITIALIZE_WATER_COOLER.call(
                values[PACKAGE],
                values["water_cooler_cap"],
                values["water_cooler"],
                values["registry"],
                values["collection"],
            )
        )
