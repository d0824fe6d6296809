"""
Rules API - FastAPI routers for price adjustment management.

Admins manage global rules and any user's rules; users manage their own.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional

from ..engine.models import AdjustmentRule, RuleScope
from ..errors import OwnershipError, RuleNotFoundError, RuleStoreError, RuleValidationError
from ..services.rules_service import RuleInput
from .auth import require_admin, require_user
from .state import PortalState, get_state

admin_router = APIRouter(
    prefix="/api/admin/prices",
    tags=["admin price adjustments"],
    dependencies=[Depends(require_admin)],
)
user_router = APIRouter(prefix="/api/user/price-adjustments", tags=["user price adjustments"])


# Pydantic models for API
class AdjustmentCreate(BaseModel):
    """Request model for creating an adjustment; give a percentage or an exact amount."""
    table_name: str
    adjustment_percentage: Optional[float] = None
    exact_amount: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class UserAdjustmentCreate(AdjustmentCreate):
    """Admin request model for creating an adjustment on behalf of a user."""
    user_id: str


class AdjustmentResponse(BaseModel):
    """Response model for a stored adjustment."""
    id: Optional[str]
    table_name: str
    user_id: Optional[str] = None
    adjustment_percentage: float
    exact_amount: Optional[float]
    min_price: Optional[float]
    max_price: Optional[float]
    created_at: Optional[str]


def _response(rule: AdjustmentRule) -> AdjustmentResponse:
    return AdjustmentResponse(**rule.to_dict())


def _newest_first(rules: list[AdjustmentRule]) -> list[AdjustmentResponse]:
    return [_response(r) for r in reversed(rules)]


def _create(state: PortalState, scope: RuleScope, data: RuleInput) -> AdjustmentResponse:
    try:
        return _response(state.rules_service.create_rule(scope, data))
    except RuleValidationError as e:
        raise HTTPException(status_code=400, detail={"errors": e.errors})
    except RuleStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


def _delete(state: PortalState, scope: RuleScope, rule_id: str) -> dict:
    try:
        state.rules_service.delete_rule(scope, rule_id)
    except RuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuleStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "message": f"Adjustment '{rule_id}' deleted"}


def _list(state: PortalState, scope: RuleScope, table_name: Optional[str], user_id: Optional[str] = None):
    try:
        rules = state.rules_service.list_rules(scope, table_name=table_name, user_id=user_id)
    except RuleStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"adjustments": _newest_first(rules)}


# Admin endpoints

@admin_router.get("/global")
async def list_global_adjustments(table_name: Optional[str] = None, state: PortalState = Depends(get_state)):
    """List global adjustments, newest first."""
    return _list(state, RuleScope.GLOBAL, table_name)


@admin_router.post("/global", response_model=AdjustmentResponse)
async def create_global_adjustment(body: AdjustmentCreate, state: PortalState = Depends(get_state)):
    """Create a global adjustment."""
    return _create(state, RuleScope.GLOBAL, RuleInput(**body.model_dump()))


@admin_router.delete("/global")
async def delete_global_adjustment(id: str, state: PortalState = Depends(get_state)):
    """Delete a global adjustment."""
    return _delete(state, RuleScope.GLOBAL, id)


@admin_router.get("/users")
async def list_user_adjustments(
    table_name: Optional[str] = None,
    user_id: Optional[str] = None,
    state: PortalState = Depends(get_state),
):
    """List every user's adjustments, newest first."""
    return _list(state, RuleScope.USER, table_name, user_id)


@admin_router.post("/users", response_model=AdjustmentResponse)
async def create_user_adjustment(body: UserAdjustmentCreate, state: PortalState = Depends(get_state)):
    """Create an adjustment for a specific user."""
    return _create(state, RuleScope.USER, RuleInput(**body.model_dump()))


@admin_router.delete("/users")
async def delete_user_adjustment(id: str, state: PortalState = Depends(get_state)):
    """Delete any user's adjustment."""
    return _delete(state, RuleScope.USER, id)


# Self-service endpoints

@user_router.get("")
async def list_my_adjustments(
    table_name: Optional[str] = None,
    user_id: str = Depends(require_user),
    state: PortalState = Depends(get_state),
):
    """List the caller's own adjustments, newest first."""
    return _list(state, RuleScope.USER, table_name, user_id)


@user_router.post("", response_model=AdjustmentResponse)
async def create_my_adjustment(
    body: AdjustmentCreate,
    user_id: str = Depends(require_user),
    state: PortalState = Depends(get_state),
):
    """Create an adjustment owned by the caller."""
    return _create(state, RuleScope.USER, RuleInput(user_id=user_id, **body.model_dump()))


@user_router.delete("")
async def delete_my_adjustment(
    id: str,
    user_id: str = Depends(require_user),
    state: PortalState = Depends(get_state),
):
    """Delete one of the caller's adjustments after checking ownership."""
    try:
        state.rules_service.delete_owned_rule(id, user_id)
    except RuleNotFoundError:
        raise HTTPException(status_code=404, detail="Adjustment not found")
    except OwnershipError:
        raise HTTPException(status_code=403, detail="Forbidden")
    except RuleStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"success": True, "message": f"Adjustment '{id}' deleted"}
