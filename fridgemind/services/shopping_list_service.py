"""
FridgeMind API — Shopping List Service
========================================

What:  The three shopping-list mutators: bulk-add, meal → list, substitutes.

Active list protocol:
    get_or_create_active_list() issues one conditional insert
        INSERT ... ON CONFLICT (user_id) WHERE is_active DO NOTHING
    and then selects the active row. The partial unique index
    `uq_shopping_lists_active_user` guarantees that concurrent callers end
    up on the same list instead of each creating one.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fridgemind.exceptions import DatabaseError, ValidationError
from fridgemind.models.inventory import InventoryItem
from fridgemind.models.shopping_list import DEFAULT_LIST_NAME, ShoppingList, ShoppingListItem
from fridgemind.schemas.auth import CurrentUser
from fridgemind.schemas.shopping_list import (
    BulkAddRequest,
    BulkAddResponse,
    FromMealRequest,
    FromMealResponse,
    MealIngredient,
    SuggestAlternativeRequest,
    SuggestAlternativeResponse,
)
from fridgemind.services.gemini_service import gemini_service
from fridgemind.services.llm_base import ai_call_errors

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ShoppingListService:

    async def get_or_create_active_list(self, db: AsyncSession, user_id: uuid.UUID) -> ShoppingList:
        """
        Return the user's active list, creating it if there is none.

        Raises:
            SQLAlchemyError: Propagated; callers wrap it in their own message.
        """
        insert = _DIALECT_INSERTS[db.get_bind().dialect.name]
        stmt = (
            insert(ShoppingList)
            .values(
                id=uuid.uuid4(),
                user_id=user_id,
                name=DEFAULT_LIST_NAME,
                is_active=True,
                created_at=datetime.now(timezone.utc),
            )
            .on_conflict_do_nothing(index_elements=["user_id"], index_where=text("is_active"))
        )
        await db.execute(stmt)

        result = await db.execute(
            select(ShoppingList).where(
                ShoppingList.user_id == user_id,
                ShoppingList.is_active.is_(True),
            )
        )
        return result.scalar_one()

    async def bulk_add(
        self, db: AsyncSession, user: CurrentUser, request: BulkAddRequest
    ) -> BulkAddResponse:
        """Add recipe items to the active list: quantity 1 and unit null unless given."""
        if not request.items:
            raise ValidationError(message="No items provided", field="items")

        try:
            shopping_list = await self.get_or_create_active_list(db, user.id)
        except SQLAlchemyError as e:
            logger.error("Failed to get active shopping list for %s: %s", user.id, str(e))
            raise DatabaseError(
                message="Failed to create shopping list",
                context={"operation": "get_or_create_active_list", "error": str(e)},
            ) from e

        now = datetime.now(timezone.utc)
        rows = [
            ShoppingListItem(
                id=uuid.uuid4(),
                list_id=shopping_list.id,
                user_id=user.id,
                name=item.name,
                quantity=item.quantity or 1,
                unit=item.unit,
                is_checked=False,
                source="recipe",
                recipe_group=item.recipe_group,
                priority=0,
                created_at=now,
            )
            for item in request.items
        ]
        try:
            db.add_all(rows)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to add %d items to list %s: %s", len(rows), shopping_list.id, str(e))
            raise DatabaseError(
                message="Failed to add items",
                context={"operation": "bulk_add", "error": str(e)},
            ) from e

        logger.info("Added %d item(s) to shopping list %s", len(rows), shopping_list.id)
        return BulkAddResponse(items_added=len(rows))

    async def _inventory_names(self, db: AsyncSession, user_id: uuid.UUID) -> List[str]:
        result = await db.execute(
            select(InventoryItem.name).where(
                InventoryItem.user_id == user_id,
                InventoryItem.consumed_at.is_(None),
            )
        )
        return list(result.scalars().all())

    async def from_meal(
        self, db: AsyncSession, user: CurrentUser, request: FromMealRequest
    ) -> FromMealResponse:
        """
        Ask the model what to buy for a meal, given what is already on hand.

        With add_to_list the ingredients are appended to the active list as
        meal_plan items. That insert is best-effort: a failure is logged and
        rolled back, never reported. The same goes for reading the inventory.
        """
        description = (request.meal_description or "").strip()
        if not description:
            raise ValidationError(message="Meal description is required", field="meal_description")

        # An unreadable inventory counts as empty
        try:
            inventory_names = await self._inventory_names(db, user.id)
        except SQLAlchemyError as e:
            logger.warning("Inventory unavailable for %s, planning without it: %s", user.id, str(e))
            await db.rollback()
            inventory_names = []

        with ai_call_errors("Failed to generate shopping list"):
            result = await gemini_service.generate_list_from_meal(description, inventory_names)

        recipe_name = result.recipe_name or description

        if request.add_to_list and result.ingredients_needed:
            await self._add_meal_plan_items(db, user.id, result.ingredients_needed)

        return FromMealResponse(
            recipe_name=recipe_name,
            ingredients_needed=result.ingredients_needed,
            already_have=result.already_have,
            added_to_list=request.add_to_list,
        )

    async def _add_meal_plan_items(
        self, db: AsyncSession, user_id: uuid.UUID, ingredients: List[MealIngredient]
    ) -> None:
        try:
            shopping_list = await self.get_or_create_active_list(db, user_id)
            now = datetime.now(timezone.utc)
            db.add_all(
                [
                    ShoppingListItem(
                        id=uuid.uuid4(),
                        list_id=shopping_list.id,
                        user_id=user_id,
                        name=ingredient.name,
                        category=ingredient.category,
                        quantity=ingredient.quantity,
                        unit=ingredient.unit,
                        is_checked=False,
                        source="meal_plan",
                        priority=0,
                        created_at=now,
                    )
                    for ingredient in ingredients
                ]
            )
            await db.flush()
        except SQLAlchemyError as e:
            logger.warning("Meal-plan items not added for user %s: %s", user_id, str(e))
            await db.rollback()

    async def suggest_alternatives(
        self, user: CurrentUser, request: SuggestAlternativeRequest
    ) -> SuggestAlternativeResponse:
        item_name = (request.item_name or "").strip()
        if not item_name:
            raise ValidationError(message="Item name is required", field="item_name")

        with ai_call_errors("Failed to suggest alternatives"):
            result = await gemini_service.suggest_alternatives(item_name, request.context)

        logger.info("%d alternative(s) for %r (user %s)", len(result.alternatives), item_name, user.id)
        return SuggestAlternativeResponse(original_item=item_name, alternatives=result.alternatives)


shopping_list_service = ShoppingListService()
