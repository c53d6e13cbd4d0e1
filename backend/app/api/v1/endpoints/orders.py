"""
Order API Endpoints.

Orders group recorded trips for billing. Users see their own orders;
admins see all.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import OwnershipGuard
from backend.app.core.redis_client import get_redis
from backend.app.db.session import get_db
from backend.app.domain.billing.billing_service import BillingService
from backend.app.models.billing_enums import OrderStatus
from backend.app.models.order import Order
from backend.app.schemas.order import OrderCreate, OrderUpdate, OrderResponse, OrderListResponse
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.services.cache import CacheService

router = APIRouter(prefix="/orders", tags=["Orders"])
ownership_guard = OwnershipGuard()


async def _get_visible_order(db: AsyncSession, order_id: int, current_user: dict) -> Order:
    order = await db.get(Order, order_id)
    if not order:
        raise ResourceNotFoundError("Order", order_id)
    ownership_guard.enforce(order.user_id, current_user, "order")
    return order


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Create an order from recorded trips.

    Each trip is billed at its recorded final price and can belong to one
    order only.
    """
    order = await BillingService.create_order(
        db,
        ownership_guard.filter_by_ownership(current_user),
        order_data.trip_ids,
        order_data.status,
    )
    await db.commit()
    await db.refresh(order)

    await log_user_action(
        db, current_user, AuditAction.ORDER_CREATED, "order", order.id,
        metadata={
            "order_number": order.order_number,
            "trip_ids": [item.trip_id for item in order.items],
            "total_amount": order.total_amount,
        },
    )
    await CacheService.invalidate(redis)

    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    order_status: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    filters = []
    owner_filter = ownership_guard.filter_by_ownership(current_user)
    if owner_filter:
        filters.append(Order.user_id == owner_filter)
    if order_status:
        filters.append(Order.status == order_status)

    total_result = await db.execute(select(func.count(Order.id)).where(*filters))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    query = select(Order).where(*filters).order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(page_size)
    result = await db.execute(query)
    orders = result.scalars().all()

    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    order = await _get_visible_order(db, order_id, current_user)
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    order_data: OrderUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    order = await _get_visible_order(db, order_id, current_user)
    previous_status = order.status

    await BillingService.update_order_status(db, order, order_data.status)
    await db.commit()
    await db.refresh(order)

    await log_user_action(
        db, current_user, AuditAction.ORDER_STATUS_CHANGED, "order", order.id,
        metadata={"from": previous_status.value, "to": order.status.value},
    )
    await CacheService.invalidate(redis)

    return OrderResponse.model_validate(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Delete an order that has not been invoiced. Its trips become orderable again.
    """
    order = await _get_visible_order(db, order_id, current_user)
    order_number = order.order_number

    await BillingService.delete_order(db, order)
    await db.commit()

    await log_user_action(
        db, current_user, AuditAction.ORDER_DELETED, "order", order_id,
        metadata={"order_number": order_number},
    )
    await CacheService.invalidate(redis)
