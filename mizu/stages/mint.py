"""
Mint stages.

Admin-side configuration of the mint (settings, warehouse, whitelist
tickets) and the user-side public mint, reveal and claim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mizu.pipeline.payload import MoveFunction, ParamKind, Transaction
from mizu.pipeline.stage import Stage

from .common import PACKAGE, PAYMENT_COIN, flow_params

if TYPE_CHECKING:
    from mizu.pipeline.context import SessionContext

OBJ = ParamKind.OBJECT

SET_MINT_PRICE = MoveFunction("mint", "set_mint_price", (OBJ, OBJ, ParamKind.U64))
SET_MINT_STATUS = MoveFunction("mint", "set_mint_status", (OBJ, OBJ, ParamKind.U8))
SET_MINT_PHASE = MoveFunction("mint", "set_mint_phase", (OBJ, OBJ, ParamKind.U8))
ADD_TO_MINT_WAREHOUSE = MoveFunction(
    "mint", "add_to_mint_warehouse", (OBJ, OBJ, ParamKind.VECTOR_OBJECT, OBJ)
)
CREATE_WL_TICKET = MoveFunction("mint", "create_wl_ticket", (OBJ, OBJ))
PUBLIC_MINT = MoveFunction("mint", "public_mint", (OBJ, OBJ, OBJ))
REVEAL_MINT = MoveFunction("mint", "reveal_mint", (OBJ, OBJ, OBJ, OBJ, ParamKind.STRING))
CLAIM_MINT = MoveFunction("mint", "claim_mint", (OBJ, OBJ, OBJ, OBJ, OBJ))
NEW_ATTRIBUTES = MoveFunction(
    "attributes", "new", (OBJ, ParamKind.VECTOR_STRING, ParamKind.VECTOR_STRING)
)
CREATE_IMAGE = MoveFunction(
    "image", "create_image", (OBJ, ParamKind.STRING, ParamKind.VECTOR_STRING)
)


# =============================================================================
# Admin
# =============================================================================


class SetMintSettings(Stage):
    """Set price, status and phase in a single transaction."""

    reads = frozenset({PACKAGE, "MintAdminCap", "MintSettings"})

    @property
    def name(self) -> str:
        return "set_mint_settings"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        settings = flow_params(ctx).mint_settings
        package, cap, mint_settings = values[PACKAGE], values["MintAdminCap"], values["MintSettings"]
        return Transaction.of(
            SET_MINT_PRICE.call(package, cap, mint_settings, settings.price),
            SET_MINT_STATUS.call(package, cap, mint_settings, settings.status),
            SET_MINT_PHASE.call(package, cap, mint_settings, settings.phase),
        )


class AddToMintWarehouse(Stage):
    reads = frozenset({PACKAGE, "MintAdminCap", "water_cooler", "mizu_nft", "MintWarehouse"})

    @property
    def name(self) -> str:
        return "add_to_mint_warehouse"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        return Transaction.of(
            ADD_TO_MINT_WAREHOUSE.call(
                values[PACKAGE],
                values["MintAdminCap"],
                values["water_cooler"],
                [values["mizu_nft"]],
                values["MintWarehouse"],
            )
        )


class CreateWhitelistTicket(Stage):
    reads = frozenset({PACKAGE, "MintAdminCap", "MintWarehouse"})
    writes = {"WhitelistTicket": "{packageId}::mint::WhitelistTicket"}

    @property
    def name(self) -> str:
        return "create_whitelist_ticket"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        return Transaction.of(
            CREATE_WL_TICKET.call(values[PACKAGE], values["MintAdminCap"], values["MintWarehouse"])
        )


# =============================================================================
# User
# =============================================================================


class PublicMint(Stage):
    reads = frozenset({PACKAGE, "MintWarehouse", "MintSettings", PAYMENT_COIN})
    writes = {
        "mint": "{packageId}::mint::Mint",
        "mint_cap": "{packageId}::mint::MintCap",
        "attributes_cap": "{packageId}::attributes::CreateAttributesCap",
        "image_cap": "{packageId}::image::CreateImageCap",
    }

    @property
    def name(self) -> str:
        return "public_mint"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        return Transaction.of(
            PUBLIC_MINT.call(
                values[PACKAGE],
                values["MintWarehouse"],
                values["MintSettings"],
                values[PAYMENT_COIN],
            )
        )


class MintImageAttributes(Stage):
    """Create the Attributes and Image objects that reveal_mint consumes."""

    reads = frozenset({PACKAGE, "attributes_cap", "image_cap"})
    writes = {
        "attributes": "{packageId}::attributes::Attributes",
        "image": "{packageId}::image::Image",
    }

    @property
    def name(self) -> str:
        return "mint_image_attributes"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        attributes = flow_params(ctx).attributes
        package = values[PACKAGE]
        return Transaction.of(
            NEW_ATTRIBUTES.call(
                package, values["attributes_cap"], list(attributes.keys), list(attributes.values)
            ),
            CREATE_IMAGE.call(
                package, values["image_cap"], attributes.image_url, list(attributes.keys)
            ),
        )


class RevealMint(Stage):
    reads = frozenset({PACKAGE, "mint_cap", "mint", "attributes", "image"})

    @property
    def name(self) -> str:
        return "reveal_mint"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        attributes = flow_params(ctx).attributes
        return Transaction.of(
            REVEAL_MINT.call(
                values[PACKAGE],
                values["mint_cap"],
                values["mint"],
                values["attributes"],
                values["image"],
                attributes.keys[0] if attributes.keys else "",
            )
        )


class ClaimMint(Stage):
    """Claim a revealed mint into the user's kiosk under the collection policy."""

    reads = frozenset(
        {PACKAGE, "water_cooler", "mint", "mizu_kiosk", "kiosk_cap", "water_cooler.policy"}
    )

    @property
    def name(self) -> str:
        return "claim_mint"

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Transaction:
        return Transaction.of(
            CLAIM_MINT.call(
                values[PACKAGE],
                values["water_cooler"],
                values["mint"],
                values["mizu_kiosk"],
                values["kiosk_cap"],
                values["water_cooler.policy"],
            )
        )
