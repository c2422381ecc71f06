from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import require_admin_session

from .catalog import catalog_payload
from .filters import ProductionFilters, production_filters
from .schemas import (
    BulkDone,
    BulkDoneResult,
    BulkStatusResult,
    BulkStatusUpdate,
    CutWeightStat,
    DashboardStats,
    OrderEnvelope,
    OrderResponse,
    ProductionSnapshot,
    StatusUpdate,
    ToggleFinish,
)
from .service import OrderService

# THIS PROTECTS EVERY ADMIN ORDER ENDPOINT
router = APIRouter(
    prefix="/api/admin",
    tags=["Admin Orders"],
    dependencies=[Depends(require_admin_session)],
)
public_router = APIRouter(tags=["Storefront"])


def _required_meat_type(meat_type: Optional[str]) -> str:
    if not meat_type or not meat_type.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="meatType required")
    return meat_type.strip().lower()


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "butcher-preorder", "status": "running"}


@public_router.get("/api/catalog")
async def get_catalog():
    return catalog_payload()


@router.get("/production-snapshot", response_model=ProductionSnapshot)
async def production_snapshot(
    meat_type: Optional[str] = Query(default=None, alias="meatType"),
    filters: ProductionFilters = Depends(production_filters),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.production_snapshot(db, _required_meat_type(meat_type), filters)


@router.get("/orders/stats", response_model=list[CutWeightStat])
async def order_stats(
    meat_type: Optional[str] = Query(default=None, alias="meatType"),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.cut_weight_stats(db, _required_meat_type(meat_type))


@router.patch("/orders/{order_id}/status", response_model=OrderEnvelope)
async def update_order_status(
    order_id: str, payload: StatusUpdate, db: AsyncSession = Depends(get_db)
):
    order = await OrderService.update_status(db, order_id, payload)
    return {"order": order}


@router.post(
    "/orders/bulk-status",
    response_model=BulkStatusResult,
    responses={409: {"model": BulkStatusResult}},
)
async def bulk_update_status(payload: BulkStatusUpdate, db: AsyncSession = Depends(get_db)):
    result = await OrderService.bulk_update_status(db, payload)
    if result["conflicts"]:
        body = BulkStatusResult.model_validate(result).model_dump(mode="json", by_alias=True)
        body["error"] = "Some orders changed or do not belong to this production list"
        return JSONResponse(body, status_code=status.HTTP_409_CONFLICT)
    return result


@router.patch("/orders/bulk-done", response_model=BulkDoneResult)
async def bulk_mark_done(payload: BulkDone, db: AsyncSession = Depends(get_db)):
    count = await OrderService.bulk_mark_done(db, payload)
    return BulkDoneResult(count=count)


@router.patch("/toggle-finish", response_model=OrderResponse)
async def toggle_finish(payload: ToggleFinish, db: AsyncSession = Depends(get_db)):
    return await OrderService.toggle_finish(db, payload)


@router.get("/stats")
async def dashboard_stats(
    stats_type: Optional[str] = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
):
    # The production gateway asks for ?type=summary on the same path
    if stats_type == "summary":
        return await OrderService.pending_summary(db)
    return DashboardStats.model_validate(await OrderService.dashboard_stats(db))


@router.get("/stats/summary", response_model=dict[str, int])
async def stats_summary(db: AsyncSession = Depends(get_db)):
    return await OrderService.pending_summary(db)
