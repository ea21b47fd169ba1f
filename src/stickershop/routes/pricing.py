from flask import Blueprint, request

from stickershop.core.config import Config
from stickershop.core.dependencies import get_service
from stickershop.routes.schemas import QuoteQuerySchema
from stickershop.routes.utils import load_or_400, success_response
from stickershop.services.catalog_service import (
    catalog_to_dict,
    get_cutting_option,
    get_default_cutting,
    get_default_material,
    get_material,
)
from stickershop.services.pricing_service import (
    calculate_price,
    get_next_tier_hint,
    get_quantity_tiers,
    snap_size,
)
from stickershop.utils.formatting_utils import format_price

pricing_bp = Blueprint("pricing", __name__)

_quote_schema = QuoteQuerySchema()


@pricing_bp.route("/pricing/quote", methods=["GET"])
def quote():
    """Sticker price breakdown plus the next-tier upsell hint."""
    args = load_or_400(_quote_schema, request.args)
    material = get_material(args["material"]) if args["material"] else get_default_material()
    cutting = get_cutting_option(args["cutting"]) if args["cutting"] else get_default_cutting()

    breakdown = calculate_price(
        args["size"],
        args["quantity"],
        material.price_modifier,
        cutting.price_cents,
        min_unit_price_cents=get_service(Config).pricing.min_unit_price_cents,
    )
    hint = get_next_tier_hint(args["quantity"])

    return success_response({
        "size": snap_size(args["size"]),
        "materialId": material.id,
        "cuttingId": cutting.id,
        "breakdown": breakdown.to_dict(),
        "unitPrice": format_price(breakdown.unit_price_cents),
        "totalPrice": format_price(breakdown.total_price_cents),
        "tierHint": hint.to_dict() if hint else None,
    })


@pricing_bp.route("/pricing/tiers", methods=["GET"])
def tiers():
    return success_response({"tiers": [t.to_dict() for t in get_quantity_tiers()]})


@pricing_bp.route("/catalog", methods=["GET"])
def catalog():
    return success_response(catalog_to_dict())
