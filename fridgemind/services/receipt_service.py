"""
FridgeMind API — Receipt Service
==================================

What:  Parses grocery receipts (PDF or photo) into structured rows, lists
       them with a spending summary, and deletes them.
How:   Composes GeminiService (document parsing) and the database layer.

Orchestration Flow (POST /api/receipts):
    ┌──────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │ Decode   │───▶│  Gemini      │───▶│ Insert header│───▶│ Insert items │
    │ PDF/img  │    │  (parse)     │    │ + commit     │    │ (best-effort)│
    └──────────┘    └──────────────┘    └──────────────┘    └──────────────┘

    The header commit is durable on its own. When the line items fail the
    receipt is kept, the response says items_saved = false and carries a
    warning; the orphaned header is not cleaned up.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fridgemind.exceptions import DatabaseError, NotFoundError, ValidationError
from fridgemind.models.receipt import Receipt, ReceiptItem
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.receipt import (
    ReceiptCreateResponse,
    ReceiptItemResponse,
    ReceiptItemsResponse,
    ReceiptListResponse,
    ReceiptResponse,
    ReceiptSummary,
    ReceiptUploadRequest,
)
from fridgemind.services.gemini_service import gemini_service
from fridgemind.services.llm_base import ai_call_errors
from fridgemind.services.media import decode_base64_media

logger = logging.getLogger(__name__)

ITEMS_NOT_SAVED_WARNING = "Receipt saved but some line items could not be stored"


class ReceiptService:
    """
    Business logic for /api/receipts.

    Error Handling Strategy:
        AI failures become LLMServiceError("Failed to process receipt").
        Database failures become DatabaseError with the operation's generic
        message, except line-item inserts which are reported in the response.
    """

    async def upload(
        self, db: AsyncSession, user: CurrentUser, request: ReceiptUploadRequest
    ) -> ReceiptCreateResponse:
        if not request.file_data:
            raise ValidationError(message="No file data provided", field="file_data")

        is_pdf = request.is_pdf
        default_mime = "application/pdf" if is_pdf else (request.file_type or "image/jpeg")
        media = decode_base64_media(request.file_data, default_mime=default_mime, field="file")

        logger.info(
            "Parsing receipt %r (%s, %d bytes) for user %s",
            request.file_name,
            "pdf" if is_pdf else media.mime_type,
            len(media.data),
            user.id,
        )

        with ai_call_errors("Failed to process receipt"):
            if is_pdf:
                parsed = await gemini_service.parse_receipt_pdf(media)
            else:
                parsed = await gemini_service.parse_receipt_image(media)

        # ── Header ──
        receipt = Receipt(
            id=uuid.uuid4(),
            user_id=user.id,
            store_name=parsed.store_name,
            store_branch=parsed.store_branch,
            receipt_date=parsed.receipt_date,
            receipt_number=parsed.receipt_number,
            subtotal=parsed.subtotal,
            gst=parsed.gst,
            total=parsed.total,
            payment_method=parsed.payment_method,
            file_name=request.file_name,
            raw_ocr_response=parsed.model_dump(mode="json"),
            created_at=datetime.now(timezone.utc),
        )
        try:
            db.add(receipt)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to save receipt for user %s: %s", user.id, str(e))
            await db.rollback()
            raise DatabaseError(
                message="Failed to save receipt",
                context={"operation": "insert_receipt", "error": str(e)},
            ) from e

        # Serialise before the item insert; a rollback there expires `receipt`
        receipt_out = ReceiptResponse.model_validate(receipt)

        # ── Line items ──
        items_saved = True
        if parsed.items:
            now = datetime.now(timezone.utc)
            rows = [
                ReceiptItem(
                    id=uuid.uuid4(),
                    receipt_id=receipt_out.id,
                    user_id=user.id,
                    item_name=item.name,
                    normalized_name=item.normalized_name,
                    food_type=item.food_type,
                    item_code=item.item_code,
                    quantity=item.quantity,
                    unit=item.unit,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                    discount=item.discount,
                    category=item.category,
                    created_at=now,
                )
                for item in parsed.items
            ]
            try:
                db.add_all(rows)
                await db.flush()
                await db.commit()
            except SQLAlchemyError as e:
                logger.error(
                    "Receipt %s stored without line items (%d lost): %s",
                    receipt_out.id,
                    len(rows),
                    str(e),
                )
                await db.rollback()
                items_saved = False

        logger.info(
            "Receipt %s saved: %s, total %.2f, %d items",
            receipt_out.id,
            receipt_out.store_name,
            receipt_out.total,
            len(parsed.items),
        )
        return ReceiptCreateResponse(
            receipt=receipt_out,
            items_count=len(parsed.items),
            items_saved=items_saved,
            warning=None if items_saved else ITEMS_NOT_SAVED_WARNING,
            parsed=parsed,
        )

    async def list_receipts(
        self, db: AsyncSession, user: CurrentUser, limit: int = 50, offset: int = 0
    ) -> ReceiptListResponse:
        """
        One page of receipts (newest receipt_date first) plus a summary.

        The summary covers every receipt the caller has, not only the page.
        """
        today = datetime.now(timezone.utc).date()
        month_start = today.replace(day=1)

        try:
            result = await db.execute(
                select(Receipt)
                .where(Receipt.user_id == user.id)
                .order_by(Receipt.receipt_date.desc(), Receipt.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            receipts = result.scalars().all()

            totals = await db.execute(
                select(
                    func.coalesce(func.sum(Receipt.total), 0),
                    func.count(Receipt.id),
                    func.coalesce(
                        func.sum(
                            case((Receipt.receipt_date >= month_start, Receipt.total), else_=0)
                        ),
                        0,
                    ),
                ).where(Receipt.user_id == user.id)
            )
            total_spent, receipt_count, this_month_spent = totals.one()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch receipts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch receipts",
                context={"operation": "list_receipts", "error": str(e)},
            ) from e

        # avg_per_trip == total_spent / receipt_count exactly; no rounding
        total_spent = float(total_spent or 0)
        receipt_count = int(receipt_count or 0)
        summary = ReceiptSummary(
            total_spent=total_spent,
            receipt_count=receipt_count,
            this_month_spent=float(this_month_spent or 0),
            avg_per_trip=total_spent / receipt_count if receipt_count else 0.0,
        )
        return ReceiptListResponse(
            receipts=[ReceiptResponse.model_validate(r) for r in receipts],
            summary=summary,
        )

    async def delete_receipt(
        self, db: AsyncSession, user: CurrentUser, receipt_id: Optional[str]
    ) -> None:
        """
        Delete the caller's receipt if it exists.

        A receipt that is missing or owned by someone else is silently left
        alone; the caller always sees success.
        """
        if not receipt_id:
            raise ValidationError(message="Receipt ID required", field="id")
        try:
            parsed_id = uuid.UUID(receipt_id)
        except ValueError as e:
            raise ValidationError(message="Invalid receipt ID", field="id") from e

        try:
            result = await db.execute(
                delete(Receipt).where(Receipt.id == parsed_id, Receipt.user_id == user.id)
            )
        except SQLAlchemyError as e:
            logger.error("Failed to delete receipt %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Failed to delete receipt",
                context={"operation": "delete_receipt", "error": str(e)},
            ) from e

        logger.info("Receipt delete %s by user %s: %s row(s)", parsed_id, user.id, result.rowcount)

    async def get_items(
        self, db: AsyncSession, user: CurrentUser, receipt_id: uuid.UUID
    ) -> ReceiptItemsResponse:
        try:
            owner_check = await db.execute(
                select(Receipt.id).where(Receipt.id == receipt_id, Receipt.user_id == user.id)
            )
            if owner_check.scalar_one_or_none() is None:
                raise NotFoundError(resource="receipt", resource_id=str(receipt_id))

            result = await db.execute(
                select(ReceiptItem)
                .where(ReceiptItem.receipt_id == receipt_id, ReceiptItem.user_id == user.id)
                .order_by(ReceiptItem.item_name)
            )
            items = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch items of receipt %s: %s", receipt_id, str(e))
            raise DatabaseError(
                message="Failed to fetch receipt items",
                context={"operation": "list_receipt_items", "error": str(e)},
            ) from e

        return ReceiptItemsResponse(
            items=[ReceiptItemResponse.model_validate(i) for i in items],
            count=len(items),
        )


receipt_service = ReceiptService()
