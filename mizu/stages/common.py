"""Helpers shared by the Mizu stages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mizu.config.flows import FlowParameters

if TYPE_CHECKING:
    from mizu.pipeline.context import SessionContext

PACKAGE = "packageId"

# Paid by buy_water_cooler and public_mint; served from the store so a
# missing coin fails as an unresolved dependency before submission
PAYMENT_COIN = "payment_coin"


def flow_params(ctx: SessionContext) -> FlowParameters:
    """Session flow parameters, or the defaults when none were loaded."""
    return ctx.params if isinstance(ctx.params, FlowParameters) else FlowParameters()
