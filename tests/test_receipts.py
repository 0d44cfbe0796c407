"""
FridgeMind API — Receipt Tests
================================

What:  Upload (PDF vs image entry point, header-then-items persistence),
       listing with summary, ownership-scoped delete and item listing.
       Persistence tests run on in-memory SQLite.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from fridgemind.exceptions import LLMServiceError, NotFoundError, ValidationError
from fridgemind.models.receipt import Receipt, ReceiptItem
from fridgemind.schemas.receipt import ParsedReceipt, ReceiptUploadRequest
from fridgemind.services.receipt_service import ITEMS_NOT_SAVED_WARNING, receipt_service

PARSED = ParsedReceipt.model_validate(
    {
        "store_name": "FairPrice",
        "store_branch": "Bedok Mall",
        "receipt_date": "2026-10-01",
        "total": 18.45,
        "gst": 1.52,
        "items": [
            {"name": "CHY TOM 250G", "normalized_name": "Cherry Tomatoes", "unit_price": 2.95},
            {"name": "FRESH MILK 1L", "quantity": 2, "unit_price": 3.1, "total_price": 6.2},
        ],
    }
)


@pytest.fixture
def mock_gemini():
    with patch("fridgemind.services.receipt_service.gemini_service") as gemini:
        gemini.parse_receipt_pdf = AsyncMock(return_value=PARSED)
        gemini.parse_receipt_image = AsyncMock(return_value=PARSED)
        yield gemini


def _receipt(user_id, receipt_date: date, total: float) -> Receipt:
    return Receipt(
        id=uuid.uuid4(),
        user_id=user_id,
        store_name="Cold Storage",
        receipt_date=receipt_date,
        total=total,
        created_at=datetime.now(timezone.utc),
    )


class TestUpload:

    @pytest.mark.asyncio
    async def test_pdf_by_file_type(self, db_session, current_user, sample_image_b64, mock_gemini):
        await receipt_service.upload(
            db_session,
            current_user,
            ReceiptUploadRequest(file_data=sample_image_b64, file_type="application/pdf"),
        )
        mock_gemini.parse_receipt_pdf.assert_awaited_once()
        mock_gemini.parse_receipt_image.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pdf_by_file_name(self, db_session, current_user, sample_image_b64, mock_gemini):
        await receipt_service.upload(
            db_session,
            current_user,
            ReceiptUploadRequest(file_data=sample_image_b64, file_name="E-Receipt.PDF"),
        )
        mock_gemini.parse_receipt_pdf.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_image_stores_header_and_items(
        self, db_session, current_user, sample_image_b64, mock_gemini
    ):
        result = await receipt_service.upload(
            db_session,
            current_user,
            ReceiptUploadRequest(file_data=sample_image_b64, file_type="image/jpeg", file_name="r.jpg"),
        )

        mock_gemini.parse_receipt_image.assert_awaited_once()
        assert result.items_saved is True
        assert result.warning is None
        assert result.items_count == 2
        assert result.receipt.store_name == "FairPrice"
        assert result.receipt.total == 18.45

        count = await db_session.scalar(
            select(func.count(ReceiptItem.id)).where(ReceiptItem.receipt_id == result.receipt.id)
        )
        assert count == 2

    @pytest.mark.asyncio
    async def test_item_failure_keeps_receipt(
        self, mock_db_session, current_user, sample_image_b64, mock_gemini
    ):
        mock_db_session.flush.side_effect = [None, IntegrityError("INSERT", {}, Exception("fk"))]

        result = await receipt_service.upload(
            mock_db_session, current_user, ReceiptUploadRequest(file_data=sample_image_b64)
        )

        assert result.items_saved is False
        assert result.warning == ITEMS_NOT_SAVED_WARNING
        assert result.receipt.store_name == "FairPrice"
        mock_db_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_file_data(self, mock_db_session, current_user, mock_gemini):
        with pytest.raises(ValidationError, match="No file data provided"):
            await receipt_service.upload(mock_db_session, current_user, ReceiptUploadRequest())

    @pytest.mark.asyncio
    async def test_parse_failure(self, mock_db_session, current_user, sample_image_b64, mock_gemini):
        mock_gemini.parse_receipt_image.side_effect = RuntimeError("bad scan")

        with pytest.raises(LLMServiceError) as exc_info:
            await receipt_service.upload(
                mock_db_session, current_user, ReceiptUploadRequest(file_data=sample_image_b64)
            )
        assert exc_info.value.message == "Failed to process receipt"
        mock_db_session.add.assert_not_called()


class TestListAndSummary:

    @pytest.mark.asyncio
    async def test_summary_covers_all_receipts(self, db_session, current_user, other_user):
        today = datetime.now(timezone.utc).date()
        month_start = today.replace(day=1)
        db_session.add_all(
            [
                _receipt(current_user.id, today, 40.0),
                _receipt(current_user.id, month_start, 10.0),
                _receipt(current_user.id, month_start - timedelta(days=1), 30.0),
                _receipt(other_user.id, today, 999.0),
            ]
        )
        await db_session.commit()

        result = await receipt_service.list_receipts(db_session, current_user, limit=1, offset=0)

        assert len(result.receipts) == 1
        assert result.receipts[0].receipt_date == today
        assert result.summary.total_spent == 80.0
        assert result.summary.receipt_count == 3
        assert result.summary.this_month_spent == 50.0
        assert result.summary.avg_per_trip == result.summary.total_spent / result.summary.receipt_count
        assert result.summary.this_month_spent <= result.summary.total_spent

    @pytest.mark.asyncio
    async def test_average_is_not_rounded(self, db_session, current_user):
        db_session.add_all(
            [
                _receipt(current_user.id, date(2026, 2, 1), 10.0),
                _receipt(current_user.id, date(2026, 2, 2), 0.0),
                _receipt(current_user.id, date(2026, 2, 3), 0.0),
            ]
        )
        await db_session.commit()

        summary = (await receipt_service.list_receipts(db_session, current_user)).summary

        assert summary.receipt_count == 3
        assert summary.avg_per_trip == 10.0 / 3

    @pytest.mark.asyncio
    async def test_empty_summary(self, db_session, current_user):
        result = await receipt_service.list_receipts(db_session, current_user)

        assert result.receipts == []
        assert result.summary.total_spent == 0
        assert result.summary.avg_per_trip == 0

    @pytest.mark.asyncio
    async def test_pagination_order(self, db_session, current_user):
        base = date(2026, 3, 1)
        db_session.add_all([_receipt(current_user.id, base + timedelta(days=i), 1.0) for i in range(5)])
        await db_session.commit()

        page = await receipt_service.list_receipts(db_session, current_user, limit=2, offset=2)

        assert [r.receipt_date for r in page.receipts] == [date(2026, 3, 3), date(2026, 3, 2)]


class TestDelete:

    @pytest.mark.asyncio
    async def test_foreign_receipt_is_untouched(self, db_session, current_user, other_user):
        theirs = _receipt(other_user.id, date(2026, 5, 1), 12.0)
        db_session.add(theirs)
        await db_session.commit()

        await receipt_service.delete_receipt(db_session, current_user, str(theirs.id))
        await db_session.commit()
        db_session.expunge_all()

        assert await db_session.get(Receipt, theirs.id) is not None

    @pytest.mark.asyncio
    async def test_own_receipt_is_deleted(self, db_session, current_user):
        mine = _receipt(current_user.id, date(2026, 5, 1), 12.0)
        db_session.add(mine)
        await db_session.commit()
        receipt_id = mine.id
        db_session.expunge_all()

        await receipt_service.delete_receipt(db_session, current_user, str(receipt_id))
        await db_session.commit()

        assert await db_session.get(Receipt, receipt_id) is None

    @pytest.mark.asyncio
    async def test_items_go_with_their_receipt(self, db_session, current_user):
        mine = _receipt(current_user.id, date(2026, 5, 1), 3.0)
        db_session.add(mine)
        db_session.add(
            ReceiptItem(
                id=uuid.uuid4(),
                receipt_id=mine.id,
                user_id=current_user.id,
                item_name="BREAD",
                total_price=3.0,
                created_at=datetime.now(timezone.utc),
            )
        )
        await db_session.commit()
        db_session.expunge_all()

        await receipt_service.delete_receipt(db_session, current_user, str(mine.id))
        await db_session.commit()

        remaining = await db_session.scalar(select(func.count()).select_from(ReceiptItem))
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_missing_id(self, mock_db_session, current_user):
        with pytest.raises(ValidationError, match="Receipt ID required"):
            await receipt_service.delete_receipt(mock_db_session, current_user, None)

    @pytest.mark.asyncio
    async def test_malformed_id(self, mock_db_session, current_user):
        with pytest.raises(ValidationError, match="Invalid receipt ID"):
            await receipt_service.delete_receipt(mock_db_session, current_user, "not-a-uuid")


class TestItems:

    @pytest.mark.asyncio
    async def test_foreign_receipt_is_not_found(self, db_session, current_user, other_user):
        theirs = _receipt(other_user.id, date(2026, 5, 1), 12.0)
        db_session.add(theirs)
        await db_session.commit()

        with pytest.raises(NotFoundError) as exc_info:
            await receipt_service.get_items(db_session, current_user, theirs.id)
        assert exc_info.value.message == "Receipt not found"

    @pytest.mark.asyncio
    async def test_items_sorted_by_name(self, db_session, current_user):
        mine = _receipt(current_user.id, date(2026, 5, 1), 5.0)
        db_session.add(mine)
        for name in ("YOGHURT", "APPLES", "MILK"):
            db_session.add(
                ReceiptItem(
                    id=uuid.uuid4(),
                    receipt_id=mine.id,
                    user_id=current_user.id,
                    item_name=name,
                    total_price=1.0,
                    created_at=datetime.now(timezone.utc),
                )
            )
        await db_session.commit()

        result = await receipt_service.get_items(db_session, current_user, mine.id)

        assert result.count == 3
        assert [i.item_name for i in result.items] == ["APPLES", "MILK", "YOGHURT"]


class TestReceiptRoutes:

    @pytest.mark.asyncio
    async def test_delete_without_id_is_400(self, api_client):
        response = await api_client.delete("/api/receipts")

        assert response.status_code == 400
        assert response.json()["error"] == "Receipt ID required"

    @pytest.mark.asyncio
    async def test_delete_always_reports_success(self, api_client, mock_db_session):
        mock_db_session.execute.return_value = MagicMock(rowcount=0)

        response = await api_client.delete(f"/api/receipts?id={uuid.uuid4()}")

        assert response.status_code == 200
        assert response.json() == {"success": True}

    @pytest.mark.asyncio
    async def test_upload_returns_201(self, api_client, sample_image_b64, mock_gemini):
        response = await api_client.post("/api/receipts", json={"file_data": sample_image_b64})

        assert response.status_code == 201
        body = response.json()
        assert body["items_count"] == 2
        assert body["items_saved"] is True
        assert body["parsed"]["store_name"] == "FairPrice"
