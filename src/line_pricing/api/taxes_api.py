"""
Taxes API - FastAPI router exposing the tax table.
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

from ..engine.models import tax_to_record
from .state import tax_table

router = APIRouter(prefix="/api/taxes", tags=["taxes"])


class TaxResponse(BaseModel):
    """Response model for a tax."""
    code: str
    name: Optional[str]
    kind: str
    value: Optional[float]
    priority: int
    affect_tax: bool


@router.get("", response_model=list[TaxResponse])
async def list_taxes():
    """List all active taxes, in table order."""
    return [TaxResponse(**tax_to_record(tax)) for tax in tax_table.taxes.values()]


@router.get("/stats")
async def get_stats():
    """Get tax table statistics."""
    return tax_table.stats()


@router.get("/{code}", response_model=TaxResponse)
async def get_tax(code: str):
    """Get a single tax by code."""
    tax = tax_table.get(code)
    if not tax:
        raise HTTPException(status_code=404, detail=f"Tax '{code}' not found")
    return TaxResponse(**tax_to_record(tax))
