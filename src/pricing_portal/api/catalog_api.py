"""
Catalog API - Applies price adjustments to catalog records for the caller.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..catalog.records import adjust_records
from ..engine.hints import describe_adjustments
from ..engine.models import CatalogTable
from ..engine.propagation import propagate
from ..engine.resolver import resolve_detailed
from ..errors import RuleFetchError
from .auth import get_user_id
from .state import PortalState, get_state

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


class AdjustRecordsRequest(BaseModel):
    """Catalog records exactly as loaded from storage."""
    records: list[dict[str, Any]]


class QuoteRequest(BaseModel):
    """A single price; give ``main_price`` when ``price`` is derived from it."""
    price: float
    main_price: Optional[float] = None


class QuoteResponse(BaseModel):
    table_name: str
    base_price: float
    price: float
    adjusted: bool
    global_rule: Optional[dict] = None
    user_rule: Optional[dict] = None
    description: str = ""


@router.post("/{table_name}/adjust")
async def adjust_catalog_records(
    table_name: CatalogTable,
    body: AdjustRecordsRequest,
    user_id: Optional[str] = Depends(get_user_id),
    state: PortalState = Depends(get_state),
):
    """
    Adjust every price in ``records`` for the caller and return the rules used.

    If the global rules cannot be loaded the records come back unadjusted.
    """
    try:
        rules = await state.fetcher.fetch_rules(table_name.value, user_id)
    except RuleFetchError as e:
        logger.warning("Serving unadjusted %s prices: %s", table_name.value, e)
        return {
            "data": body.records,
            "price_adjustments": None,
            "count": len(body.records),
            "error": str(e),
        }

    data = adjust_records(table_name, body.records, rules)
    return {
        "data": data,
        "price_adjustments": rules.to_dict(),
        "count": len(data),
    }


@router.post("/{table_name}/quote", response_model=QuoteResponse)
async def quote_price(
    table_name: CatalogTable,
    body: QuoteRequest,
    user_id: Optional[str] = Depends(get_user_id),
    state: PortalState = Depends(get_state),
):
    """Resolve one price (or a derived price against its main price)."""
    try:
        rules = await state.fetcher.fetch_rules(table_name.value, user_id)
    except RuleFetchError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if body.main_price is not None:
        # Derived prices follow the rules chosen for their main price
        resolution = resolve_detailed(body.main_price, rules)
        price = propagate(body.price, body.main_price, rules)
    else:
        resolution = resolve_detailed(body.price, rules)
        price = resolution.price

    user_rule = resolution.user_rule if not resolution.user_rule_blocked else None
    return QuoteResponse(
        table_name=table_name.value,
        base_price=body.price,
        price=price,
        adjusted=resolution.applied,
        global_rule=resolution.global_rule.to_dict() if resolution.global_rule else None,
        user_rule=user_rule.to_dict() if user_rule else None,
        description=describe_adjustments(rules),
    )
