"""
FridgeMind API — Receipt Routes
=================================

What:  Upload (parse + store), list with spending summary, delete, and list
       the line items of one receipt.

Deleting is idempotent and never reveals whether a receipt exists: a
missing or foreign id still returns {"success": true}.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fridgemind.database import get_db_session
from fridgemind.dependencies import get_current_user
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.common import ErrorResponse, SuccessResponse
from fridgemind.schemas.receipt import (
    ReceiptCreateResponse,
    ReceiptItemsResponse,
    ReceiptListResponse,
    ReceiptUploadRequest,
)
from fridgemind.services.receipt_service import receipt_service

router = APIRouter(prefix="/api", tags=["Receipts"])


@router.post(
    "/receipts",
    response_model=ReceiptCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "No file data provided", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        500: {"description": "Parse or save failed", "model": ErrorResponse},
    },
    summary="Parse and store a grocery receipt (PDF or photo)",
)
async def upload_receipt(
    request: ReceiptUploadRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReceiptCreateResponse:
    """
    The receipt header is committed before its line items. If the items
    cannot be stored the response has `items_saved: false` and a warning.
    """
    return await receipt_service.upload(db, user, request)


@router.get(
    "/receipts",
    response_model=ReceiptListResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="List receipts with a spending summary",
)
async def list_receipts(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReceiptListResponse:
    return await receipt_service.list_receipts(db, user, limit=limit, offset=offset)


@router.delete(
    "/receipts",
    response_model=SuccessResponse,
    responses={
        400: {"description": "Receipt ID required", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
    },
    summary="Delete one of the caller's receipts",
)
async def delete_receipt(
    id: Optional[str] = Query(default=None, description="Receipt id"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    await receipt_service.delete_receipt(db, user, id)
    return SuccessResponse()


@router.get(
    "/receipts/{receipt_id}/items",
    response_model=ReceiptItemsResponse,
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        404: {"description": "Receipt not found", "model": ErrorResponse},
    },
    summary="Line items of a receipt",
)
async def get_receipt_items(
    receipt_id: uuid.UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReceiptItemsResponse:
    return await receipt_service.get_items(db, user, receipt_id)
