"""
FridgeMind API — Shopping List Tests
======================================

What:  Active-list get-or-create, bulk-add, meal → list and substitutes.
How:   The active-list protocol runs against in-memory SQLite so the
       partial unique index and ON CONFLICT DO NOTHING are exercised for real.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from fridgemind.exceptions import LLMServiceError, ValidationError
from fridgemind.models.inventory import InventoryItem
from fridgemind.models.shopping_list import DEFAULT_LIST_NAME, ShoppingList, ShoppingListItem
from fridgemind.schemas.shopping_list import (
    AlternativesResult,
    BulkAddRequest,
    FromMealRequest,
    MealToListResult,
    SuggestAlternativeRequest,
)
from fridgemind.services.shopping_list_service import shopping_list_service

MEAL_ANSWER = MealToListResult.model_validate(
    {
        "recipe_name": "Pad Thai",
        "ingredients_needed": [
            {"name": "Rice noodles", "quantity": 200, "unit": "g", "category": "grains"},
            {"name": "Tamarind paste", "quantity": -1, "unit": None},
        ],
        "already_have": ["Eggs"],
    }
)


@pytest.fixture
def mock_gemini():
    with patch("fridgemind.services.shopping_list_service.gemini_service") as gemini:
        gemini.generate_list_from_meal = AsyncMock(return_value=MEAL_ANSWER)
        gemini.suggest_alternatives = AsyncMock(
            return_value=AlternativesResult.model_validate(
                {"alternatives": [{"name": "Milk + lemon juice", "reason": "Same acidity"}]}
            )
        )
        yield gemini


async def _count(session, model, **filters):
    stmt = select(func.count()).select_from(model)
    for column, value in filters.items():
        stmt = stmt.where(getattr(model, column) == value)
    return await session.scalar(stmt)


class TestActiveList:

    @pytest.mark.asyncio
    async def test_creates_once_and_reuses(self, session_factory, current_user):
        async with session_factory() as first:
            created = await shopping_list_service.get_or_create_active_list(first, current_user.id)
            await first.commit()

        async with session_factory() as second:
            again = await shopping_list_service.get_or_create_active_list(second, current_user.id)
            await second.commit()
            lists = await _count(second, ShoppingList, user_id=current_user.id)

        assert again.id == created.id
        assert created.name == DEFAULT_LIST_NAME
        assert created.is_active is True
        assert lists == 1

    @pytest.mark.asyncio
    async def test_inactive_lists_do_not_block_a_new_active_one(self, db_session, current_user):
        db_session.add(
            ShoppingList(
                id=uuid.uuid4(),
                user_id=current_user.id,
                name="Last week",
                is_active=False,
                created_at=datetime.now(timezone.utc),
            )
        )
        await db_session.flush()

        active = await shopping_list_service.get_or_create_active_list(db_session, current_user.id)

        assert active.is_active is True
        assert active.name == DEFAULT_LIST_NAME

    @pytest.mark.asyncio
    async def test_lists_are_per_user(self, db_session, current_user, other_user):
        mine = await shopping_list_service.get_or_create_active_list(db_session, current_user.id)
        theirs = await shopping_list_service.get_or_create_active_list(db_session, other_user.id)

        assert mine.id != theirs.id


class TestBulkAdd:

    @pytest.mark.asyncio
    async def test_first_item_creates_list(self, db_session, current_user):
        result = await shopping_list_service.bulk_add(
            db_session, current_user, BulkAddRequest.model_validate({"items": [{"name": "milk"}]})
        )
        await db_session.commit()

        assert result.items_added == 1
        assert await _count(db_session, ShoppingList, user_id=current_user.id, is_active=True) == 1

        item = (await db_session.execute(select(ShoppingListItem))).scalar_one()
        assert item.name == "milk"
        assert item.quantity == 1
        assert item.unit is None
        assert item.is_checked is False
        assert item.source == "recipe"

    @pytest.mark.asyncio
    async def test_keeps_quantity_unit_and_recipe_group(self, db_session, current_user):
        await shopping_list_service.bulk_add(
            db_session,
            current_user,
            BulkAddRequest.model_validate(
                {"items": [{"name": "flour", "quantity": 2, "unit": "cups", "recipe_group": "Pancakes"}]}
            ),
        )

        item = (await db_session.execute(select(ShoppingListItem))).scalar_one()
        assert (item.quantity, item.unit, item.recipe_group) == (2, "cups", "Pancakes")

    @pytest.mark.asyncio
    async def test_empty_items(self, mock_db_session, current_user):
        with pytest.raises(ValidationError, match="No items provided"):
            await shopping_list_service.bulk_add(mock_db_session, current_user, BulkAddRequest(items=[]))


class TestFromMeal:

    @pytest.mark.asyncio
    async def test_sends_only_unconsumed_inventory(self, db_session, current_user, mock_gemini):
        now = datetime.now(timezone.utc)
        db_session.add_all(
            [
                InventoryItem(id=uuid.uuid4(), user_id=current_user.id, name="Eggs", location="fridge", created_at=now),
                InventoryItem(
                    id=uuid.uuid4(),
                    user_id=current_user.id,
                    name="Bean sprouts",
                    location="fridge",
                    created_at=now,
                    consumed_at=now,
                ),
            ]
        )
        await db_session.flush()

        result = await shopping_list_service.from_meal(
            db_session, current_user, FromMealRequest(meal_description="pad thai")
        )

        mock_gemini.generate_list_from_meal.assert_awaited_once_with("pad thai", ["Eggs"])
        assert result.recipe_name == "Pad Thai"
        assert result.already_have == ["Eggs"]
        assert result.added_to_list is False
        assert await _count(db_session, ShoppingListItem) == 0

    @pytest.mark.asyncio
    async def test_ingredient_defaults(self, db_session, current_user, mock_gemini):
        result = await shopping_list_service.from_meal(
            db_session, current_user, FromMealRequest(meal_description="pad thai")
        )

        tamarind = result.ingredients_needed[1]
        assert tamarind.quantity == 1
        assert tamarind.unit == "pc"
        assert tamarind.category == "other"

    @pytest.mark.asyncio
    async def test_recipe_name_falls_back_to_description(self, db_session, current_user, mock_gemini):
        mock_gemini.generate_list_from_meal.return_value = MealToListResult()

        result = await shopping_list_service.from_meal(
            db_session, current_user, FromMealRequest(meal_description="  laksa  ")
        )

        assert result.recipe_name == "laksa"

    @pytest.mark.asyncio
    async def test_add_to_list_inserts_meal_plan_items(self, db_session, current_user, mock_gemini):
        result = await shopping_list_service.from_meal(
            db_session, current_user, FromMealRequest(meal_description="pad thai", add_to_list=True)
        )

        assert result.added_to_list is True
        items = (await db_session.execute(select(ShoppingListItem))).scalars().all()
        assert sorted(i.name for i in items) == ["Rice noodles", "Tamarind paste"]
        assert {i.source for i in items} == {"meal_plan"}
        assert {i.priority for i in items} == {0}

    @pytest.mark.asyncio
    async def test_blank_description(self, mock_db_session, current_user, mock_gemini):
        with pytest.raises(ValidationError, match="Meal description is required"):
            await shopping_list_service.from_meal(
                mock_db_session, current_user, FromMealRequest(meal_description="   ")
            )

    @pytest.mark.asyncio
    async def test_unreadable_inventory_counts_as_empty(self, mock_db_session, current_user, mock_gemini):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        result = await shopping_list_service.from_meal(
            mock_db_session, current_user, FromMealRequest(meal_description="pad thai")
        )

        mock_gemini.generate_list_from_meal.assert_awaited_once_with("pad thai", [])
        mock_db_session.rollback.assert_awaited_once()
        assert result.recipe_name == "Pad Thai"

    @pytest.mark.asyncio
    async def test_ai_failure(self, db_session, current_user, mock_gemini):
        mock_gemini.generate_list_from_meal.side_effect = RuntimeError("timeout")

        with pytest.raises(LLMServiceError) as exc_info:
            await shopping_list_service.from_meal(
                db_session, current_user, FromMealRequest(meal_description="pad thai")
            )
        assert exc_info.value.message == "Failed to generate shopping list"


class TestSuggestAlternatives:

    @pytest.mark.asyncio
    async def test_returns_alternatives(self, current_user, mock_gemini):
        result = await shopping_list_service.suggest_alternatives(
            current_user, SuggestAlternativeRequest(item_name="buttermilk", context="pancakes")
        )

        mock_gemini.suggest_alternatives.assert_awaited_once_with("buttermilk", "pancakes")
        assert result.original_item == "buttermilk"
        assert result.alternatives[0].name == "Milk + lemon juice"

    @pytest.mark.asyncio
    async def test_blank_name(self, current_user, mock_gemini):
        with pytest.raises(ValidationError, match="Item name is required"):
            await shopping_list_service.suggest_alternatives(
                current_user, SuggestAlternativeRequest(item_name="")
            )


class TestShoppingListRoutes:

    @pytest.mark.asyncio
    async def test_bulk_add_without_items_is_400(self, api_client):
        response = await api_client.post("/api/shopping-list/bulk-add", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "No items provided"

    @pytest.mark.asyncio
    async def test_suggest_failure_is_500(self, api_client, mock_gemini):
        mock_gemini.suggest_alternatives.side_effect = RuntimeError("boom")

        response = await api_client.post(
            "/api/shopping-list/suggest-alternative", json={"item_name": "buttermilk"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to suggest alternatives"
