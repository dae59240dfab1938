"""Fridge items CRUD endpoints (user-scoped)."""

import typing as t

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from smartshelf.core.auth import get_current_user
from smartshelf.core.database import get_db
from smartshelf.core.models import ExpiryStatus, ItemCategory
from smartshelf.schemas.auth import TokenData
from smartshelf.schemas.classification import ExpiryClassification
from smartshelf.schemas.food_item import (
    FridgeItemCreate,
    FridgeItemListResponse,
    FridgeItemResponse,
    FridgeItemUpdate,
)
from smartshelf.services import (
    ExpiryNotificationOrchestrator,
    ItemNotFoundError,
    ItemService,
    QRCodeNotFoundError,
)
from smartshelf.utils.notifications import get_orchestrator

ROUTER = APIRouter(prefix="/items", tags=["Fridge Items"])


@ROUTER.get("", response_model=FridgeItemListResponse)
async def list_items(  # pylint: disable=too-many-arguments,too-many-positional-arguments,line-too-long  # noqa: E501
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    name: str | None = Query(
        None, description="Filter by name (partial match)"
    ),
    category: ItemCategory | None = Query(
        None, description="Filter by category"
    ),
    expiry_status: ExpiryStatus | None = Query(
        None, description="Filter by freshness status"
    ),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
) -> FridgeItemListResponse:
    """List the user's fridge items, soonest expiry first.

    Args:
        db (AsyncSession):
            The database session.
        current_user (TokenData):
            The currently authenticated user.
        name (str | None):
            Filter by name (partial match).
        category (ItemCategory | None):
            Filter by category.
        expiry_status (ExpiryStatus | None):
            Filter by freshness status.
        page (int):
            Page number for pagination.
        page_size (int):
            Number of items per page.

    Returns:
        FridgeItemListResponse: Paginated list of fridge items.
    """
    return await ItemService(db, current_user.user_id).list_items(
        name=name,
        category=category,
        expiry_status=expiry_status,
        page=page,
        page_size=page_size,
    )


@ROUTER.get("/qr/{qr_code_id}", response_model=FridgeItemResponse)
async def get_item_by_qr_code(
    qr_code_id: str,
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
) -> FridgeItemResponse:
    """Resolve a scanned QR code to its item.

    Args:
        qr_code_id (str): The scanned identifier.
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.

    Returns:
        FridgeItemResponse: The fridge item data.
    """
    try:
        return await ItemService(db, current_user.user_id).get_item_by_qr_code(
            qr_code_id
        )
    except QRCodeNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@ROUTER.get("/{item_id}", response_model=FridgeItemResponse)
async def get_item(
    item_id: str,
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
) -> FridgeItemResponse:
    """Get a specific fridge item by ID.

    Args:
        item_id (str): The ID of the fridge item.
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.

    Returns:
        FridgeItemResponse: The fridge item data.
    """
    try:
        return await ItemService(db, current_user.user_id).get_item(item_id)
    except ItemNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@ROUTER.get("/{item_id}/expiry", response_model=ExpiryClassification)
async def get_item_expiry(
    item_id: str,
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
) -> ExpiryClassification:
    """Classify an item's freshness right now.

    Args:
        item_id (str): The ID of the fridge item.
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.

    Returns:
        ExpiryClassification: Status, days left and display hints.
    """
    try:
        item: FridgeItemResponse = await ItemService(
            db, current_user.user_id
        ).get_item(item_id)
    except ItemNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return item.expiry


@ROUTER.post(
    "", response_model=FridgeItemResponse, status_code=status.HTTP_201_CREATED
)
async def create_item(
    item_data: FridgeItemCreate,
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
) -> FridgeItemResponse:
    """Create a fridge item and schedule its notifications.

    The item is committed first; scheduling problems never fail the
    request.

    Args:
        item_data (FridgeItemCreate): The fridge item data.
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.
        orchestrator (ExpiryNotificationOrchestrator):
            Keeps notifications in step with the item.

    Returns:
        FridgeItemResponse: The created fridge item.
    """
    item: FridgeItemResponse = await ItemService(
        db, current_user.user_id
    ).create_item(
        name=item_data.name,
        quantity=item_data.quantity,
        expiry_date=item_data.expiry_date,
        category=item_data.category,
    )
    await db.commit()

    await orchestrator.on_item_created(item)
    return item


@ROUTER.put("/{item_id}", response_model=FridgeItemResponse)
async def update_item(
    item_id: str,
    item_data: FridgeItemUpdate,
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
) -> FridgeItemResponse:
    """Update a fridge item, rescheduling when name or expiry changed.

    Args:
        item_id (str): The ID of the fridge item.
        item_data (FridgeItemUpdate): The fields to change.
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.
        orchestrator (ExpiryNotificationOrchestrator):
            Keeps notifications in step with the item.

    Returns:
        FridgeItemResponse: The updated fridge item.
    """
    service: ItemService = ItemService(db, current_user.user_id)
    try:
        before: FridgeItemResponse = await service.get_item(item_id)
        item: FridgeItemResponse = await service.update_item(
            item_id,
            name=item_data.name,
            quantity=item_data.quantity,
            expiry_date=item_data.expiry_date,
            category=item_data.category,
        )
    except ItemNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    await db.commit()

    # Payloads carry name and expiry date
    if (before.name, before.expiry_date) != (item.name, item.expiry_date):
        await orchestrator.on_item_updated(item)
    return item


@ROUTER.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    db: t.Annotated[AsyncSession, Depends(get_db)],
    current_user: t.Annotated[TokenData, Depends(get_current_user)],
    orchestrator: t.Annotated[
        ExpiryNotificationOrchestrator, Depends(get_orchestrator)
    ],
) -> Response:
    """Delete a fridge item and cancel its notifications.

    Args:
        item_id (str): The ID of the fridge item.
        db (AsyncSession): The database session.
        current_user (TokenData): The currently authenticated user.
        orchestrator (ExpiryNotificationOrchestrator):
            Keeps notifications in step with the item.

    Returns:
        Response: Empty response.
    """
    try:
        await ItemService(db, current_user.user_id).delete_item(item_id)
    except ItemNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    await db.commit()

    await orchestrator.on_item_deleted(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
