"""Item service - business logic for fridge item operations."""

import typing as t
from datetime import date, datetime

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.models import ExpiryStatus, FridgeItem, ItemCategory
from smartshelf.schemas.food_item import (
    FridgeItemListResponse,
    FridgeItemResponse,
)
from smartshelf.services.expiry_classifier import classify
from smartshelf.utils.dates import utc_now
from smartshelf.utils.qr_codes import generate_qr_code_id


class ItemNotFoundError(Exception):
    """Raised when an item is not found."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Item with ID {item_id} not found")


class QRCodeNotFoundError(Exception):
    """Raised when no item carries a scanned QR code."""

    def __init__(self, qr_code_id: str) -> None:
        self.qr_code_id = qr_code_id
        super().__init__("Item not found. Please check your QR code.")


class ItemService:
    """Service class for fridge item operations (user-scoped)."""

    db: AsyncSession
    user_id: str
    clock: t.Callable[[], datetime]

    def __init__(
        self,
        db: AsyncSession,
        user_id: str,
        clock: t.Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize ItemService.

        Args:
            db (AsyncSession): The database session.
            user_id (str): The owner to scope operations to.
            clock (Callable[[], datetime]): Returns the current instant.
        """
        self.db = db
        self.user_id = user_id
        self.clock = clock

    def convert_item_to_response(self, item: FridgeItem) -> FridgeItemResponse:
        """Convert FridgeItem model to FridgeItemResponse schema.

        Args:
            item (FridgeItem): The fridge item model.

        Returns:
            FridgeItemResponse: The fridge item response schema.
        """
        return FridgeItemResponse(
            id=item.id,
            name=item.name,
            category=item.category,
            quantity=item.quantity,
            expiry_date=item.expiry_date,
            qr_code_id=item.qr_code_id,
            expiry=classify(self.clock(), item.expiry_date),
            created_at=item.created_at,
            updated_at=item.updated_at or item.created_at,
        )

    async def get_item_model(self, item_id: str) -> FridgeItem:
        """Get the raw FridgeItem model by ID.

        Args:
            item_id (str): The ID of the fridge item.

        Returns:
            FridgeItem: The fridge item model.
        """
        item: FridgeItem | None = (
            await self.db.execute(
                select(FridgeItem).where(
                    FridgeItem.id == item_id,
                    FridgeItem.user_id == self.user_id,
                )
            )
        ).scalar_one_or_none()

        if item is None:
            raise ItemNotFoundError(item_id)

        return item

    async def get_item(self, item_id: str) -> FridgeItemResponse:
        """Get a specific fridge item by ID.

        Args:
            item_id (str): The ID of the fridge item.

        Returns:
            FridgeItemResponse: The fridge item response schema.
        """
        return self.convert_item_to_response(
            await self.get_item_model(item_id)
        )

    async def get_item_by_qr_code(self, qr_code_id: str) -> FridgeItemResponse:
        """Look up the item a scanned QR code belongs to.

        Args:
            qr_code_id (str): The scanned identifier.

        Returns:
            FridgeItemResponse: The fridge item response schema.
        """
        item: FridgeItem | None = (
            await self.db.execute(
                select(FridgeItem).where(
                    FridgeItem.qr_code_id == qr_code_id,
                    FridgeItem.user_id == self.user_id,
                )
            )
        ).scalar_one_or_none()

        if item is None:
            raise QRCodeNotFoundError(qr_code_id)

        return self.convert_item_to_response(item)

    async def list_items(  # pylint: disable=too-many-arguments,too-many-positional-arguments,line-too-long  # noqa: E501
        self,
        name: str | None = None,
        category: ItemCategory | None = None,
        expiry_status: ExpiryStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> FridgeItemListResponse:
        """List fridge items, soonest expiry first.

        Args:
            name (str | None):
                Optional name filter.
            category (ItemCategory | None):
                Optional category filter.
            expiry_status (ExpiryStatus | None):
                Optional freshness status filter.
            page (int):
                Page number for pagination.
            page_size (int):
                Number of items per page.

        Returns:
            FridgeItemListResponse: The paginated list of fridge items.
        """
        query: Select[t.Tuple[FridgeItem]] = select(FridgeItem).where(
            FridgeItem.user_id == self.user_id
        )

        if name is not None:
            query = query.where(FridgeItem.name.ilike(f"%{name}%"))

        if category is not None:
            query = query.where(FridgeItem.category == category)

        query = query.order_by(
            FridgeItem.expiry_date.asc(), FridgeItem.created_at.asc()
        )

        if expiry_status is not None:
            # Status depends on the current time, so filter after loading
            items: t.Sequence[FridgeItem] = (
                (await self.db.execute(query)).scalars().all()
            )
            matching: t.List[FridgeItemResponse] = [
                response
                for response in map(self.convert_item_to_response, items)
                if response.expiry.status == expiry_status
            ]
            total: int = len(matching)
            offset: int = (page - 1) * page_size
            item_responses: t.List[FridgeItemResponse] = matching[
                offset : offset + page_size
            ]
        else:
            count_query: Select[t.Tuple[int]] = select(
                func.count()  # pylint: disable=not-callable
            ).select_from(query.subquery())
            total = (await self.db.execute(count_query)).scalar() or 0
            page_items: t.Sequence[FridgeItem] = (
                (
                    await self.db.execute(
                        query.offset((page - 1) * page_size).limit(page_size)
                    )
                )
                .scalars()
                .all()
            )
            item_responses = [
                self.convert_item_to_response(item) for item in page_items
            ]

        total_pages: int = (
            (total + page_size - 1) // page_size if total > 0 else 1
        )

        return FridgeItemListResponse(
            items=item_responses,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )

    async def create_item(
        self,
        name: str,
        quantity: int,
        expiry_date: date,
        category: ItemCategory = ItemCategory.OTHER,
    ) -> FridgeItemResponse:
        """Create a new fridge item with a fresh QR code id.

        Args:
            name (str): The name of the item.
            quantity (int): How many units are stored.
            expiry_date (date): The expiry date.
            category (ItemCategory): The item category.

        Returns:
            FridgeItemResponse: The created fridge item response schema.
        """
        new_item: FridgeItem = FridgeItem(
            user_id=self.user_id,
            name=name,
            quantity=quantity,
            expiry_date=expiry_date,
            category=category,
            qr_code_id=generate_qr_code_id(),
        )

        self.db.add(new_item)
        await self.db.flush()
        await self.db.refresh(new_item)
        return self.convert_item_to_response(new_item)

    async def update_item(  # pylint: disable=too-many-arguments,too-many-positional-arguments,line-too-long  # noqa: E501
        self,
        item_id: str,
        name: str | None = None,
        quantity: int | None = None,
        expiry_date: date | None = None,
        category: ItemCategory | None = None,
    ) -> FridgeItemResponse:
        """Update an existing fridge item.

        Args:
            item_id (str):
                The ID of the fridge item to update.
            name (str | None):
                The new name of the item.
            quantity (int | None):
                The new quantity.
            expiry_date (date | None):
                The new expiry date.
            category (ItemCategory | None):
                The new category.

        Returns:
            FridgeItemResponse: The updated fridge item response schema.
        """
        item: FridgeItem = await self.get_item_model(item_id)

        if name is not None:
            item.name = name
        if quantity is not None:
            item.quantity = quantity
        if expiry_date is not None:
            item.expiry_date = expiry_date
        if category is not None:
            item.category = category

        await self.db.flush()
        await self.db.refresh(item)
        return self.convert_item_to_response(item)

    async def delete_item(self, item_id: str) -> None:
        """Delete a fridge item by ID.

        Args:
            item_id (str): The ID of the fridge item to delete.
        """
        item: FridgeItem = await self.get_item_model(item_id)
        await self.db.delete(item)
        await self.db.flush()
