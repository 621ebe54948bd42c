from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from line_pricing import __version__
from line_pricing.engine import (
    Discount, DiscountMergeError, Item, UnknownTaxError, ValidationError,
    discount_from_record, tax_from_record,
)
from line_pricing.engine.models import discount_to_record
from line_pricing.api.taxes_api import router as taxes_router
from line_pricing.api.state import settings, tax_table

app = FastAPI(
    title="Line Pricing API",
    description="Subtotal, discount, tax chain and total of a single sale line",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include tax table API
app.include_router(taxes_router)


class TaxIn(BaseModel):
    """Inline tax definition."""
    code: str
    name: Optional[str] = None
    kind: Literal["percent", "fixed"] = "percent"
    value: float = 0.0
    priority: int = 0
    affect_tax: bool = False


class DiscountIn(BaseModel):
    """Discount definition; kind 'none' means no discount."""
    kind: Literal["none", "percent", "amount", "tiered"] = "none"
    value: float = 0.0
    tiers: List[List[float]] = Field(default_factory=list)
    is_unitary: bool = False
    affect_tax: bool = True


class CalcRequest(BaseModel):
    code: str = ""
    quantity: float
    unit_price: float
    tax_codes: List[str] = Field(default_factory=list)
    taxes: List[TaxIn] = Field(default_factory=list)
    discount: Optional[DiscountIn] = None


class DiscountAddRequest(CalcRequest):
    add_discount: DiscountIn


def _build_item(req: CalcRequest) -> Item:
    """Resolve tax codes against the table, add inline taxes and build the item."""
    taxes = tax_table.resolve(req.tax_codes)
    taxes += [tax_from_record(t.model_dump()) for t in req.taxes]

    codes = [t.code for t in taxes]
    duplicates = sorted({c for c in codes if codes.count(c) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate tax code(s): {', '.join(duplicates)}")

    discount = discount_from_record(req.discount.model_dump()) if req.discount else None
    return Item(
        code=req.code,
        quantity=req.quantity,
        unit_price=req.unit_price,
        discount=discount,
        taxes=taxes,
    )


@app.get("/")
async def root():
    return {"status": "online", "message": "Line Pricing API Active"}


@app.post("/calculate")
async def calculate(req: CalcRequest):
    try:
        item = _build_item(req)
        return jsonable_encoder(item.breakdown())
    except UnknownTaxError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/calculate/discount")
async def add_discount(req: DiscountAddRequest):
    """Add a discount to the item's discount and price the combined result."""
    try:
        item = _build_item(req)
        add = discount_from_record(req.add_discount.model_dump()) or Discount.empty()
        combined, leftover = item.discount_adding(add)
        return {
            "combined": discount_to_record(combined),
            "leftover": discount_to_record(leftover),
            "breakdown": jsonable_encoder(item.copy_with(combined).breakdown()),
        }
    except UnknownTaxError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ValidationError, DiscountMergeError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "version": __version__,
        "tax_table": str(settings.tax_table),
        "taxes_loaded": tax_table.loaded,
        "taxes_count": len(tax_table.taxes),
    }
