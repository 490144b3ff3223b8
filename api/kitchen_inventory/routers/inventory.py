# kitchen_inventory/routers/inventory.py
"""
Inventory Router - read/write over the inventory table.

ValidationError -> 400, NotFoundError -> 404, StorageError -> 500.
"""
from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from kitchen_inventory.adapters.detection import Detection, DetectionAdapter
from kitchen_inventory.database import get_session
from kitchen_inventory.errors import InventoryError
from kitchen_inventory.models import (
    FrameIn, FrameReportOut, InventoryItemOut, UpdateItemIn, UpsertItemIn,
)
from kitchen_inventory.services.reconciliation import ReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])


def get_service(db: AsyncSession = Depends(get_session)) -> ReconciliationService:
    return ReconciliationService(db)


def get_detection_adapter(
    request: Request,
    service: ReconciliationService = Depends(get_service),
) -> DetectionAdapter:
    return DetectionAdapter.from_settings(service, request.app.state.settings)


def _http_error(e: InventoryError) -> HTTPException:
    if e.status_code >= 500:
        logger.error(f"{type(e).__name__}: {e.message}")
    return HTTPException(status_code=e.status_code, detail=e.message)


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=List[InventoryItemOut])
async def list_inventory(service: ReconciliationService = Depends(get_service)):
    """All inventory items (unordered contract; currently by id)."""
    try:
        return await service.list_items()
    except InventoryError as e:
        raise _http_error(e)


@router.get("/{item_id}", response_model=InventoryItemOut)
async def get_inventory_item(item_id: int, service: ReconciliationService = Depends(get_service)):
    try:
        return await service.get_item(item_id)
    except InventoryError as e:
        raise _http_error(e)


@router.put("/add/{name}", response_model=InventoryItemOut)
async def add_or_merge_item(
    name: str,
    payload: UpsertItemIn,
    response: Response,
    service: ReconciliationService = Depends(get_service),
):
    """
    Add an item, or add ``quantity`` to the existing item with that name.

    201 when the item was created, 200 when it was merged.
    """
    try:
        result = await service.upsert_by_name(
            name,
            payload.quantity,
            payload.cost,
            payload.expiry,
            payload.status,
        )
    except InventoryError as e:
        raise _http_error(e)

    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return result.item


@router.put("/update/{item_id}", response_model=InventoryItemOut)
async def update_item(
    item_id: int,
    payload: UpdateItemIn,
    service: ReconciliationService = Depends(get_service),
):
    """Manual edit: replace cost, expiry and status. Quantity is left alone."""
    try:
        return await service.edit_item(item_id, payload.cost, payload.expiry, payload.status)
    except InventoryError as e:
        raise _http_error(e)


@router.post("/detections", response_model=FrameReportOut)
async def ingest_detection_frame(
    frame: FrameIn,
    adapter: DetectionAdapter = Depends(get_detection_adapter),
):
    """
    One frame of detector output. Labels outside the allow-list are dropped;
    failed upserts are reported in ``failed`` and do not fail the request.
    """
    detections = [
        Detection(label=d.label, confidence=d.confidence, bbox=tuple(d.bbox))
        for d in frame.detections
    ]
    report = await adapter.process_frame(detections)
    return FrameReportOut(
        counts=report.counts,
        dropped=report.dropped,
        applied=report.applied,
        failed=report.failed,
    )
