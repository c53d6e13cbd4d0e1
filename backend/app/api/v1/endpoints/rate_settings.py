"""
Rate Settings API Endpoints.

Everyone can read the rate tables used for pricing; only admins change them.
"""

from typing import List, Type

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.core.config import settings as app_settings
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.core.guards import require_admin
from backend.app.db.session import get_db
from backend.app.domain.pricing.rate_resolver import RateResolver
from backend.app.models.company_settings import CompanySettings
from backend.app.models.discount import Discount
from backend.app.models.surcharge_factor import SurchargeFactor
from backend.app.schemas.rate_settings import (
    RateAdjustmentCreate, RateAdjustmentUpdate, RateAdjustmentResponse,
    RateSettingsUpdate, RateSettingsResponse
)
from backend.app.services.audit import log_user_action, AuditAction
from backend.app.utils.validators import is_valid_rate_settings

router = APIRouter(prefix="/settings", tags=["Rate Settings"])


async def _build_rate_settings(db: AsyncSession) -> RateSettingsResponse:
    company = await RateResolver.get_company_settings(db)
    surcharges = await RateResolver.list_surcharges(db)
    discounts = await RateResolver.list_discounts(db)

    return RateSettingsResponse(
        company_name=company.company_name if company else None,
        base_mile_rate=company.base_mile_rate if company else app_settings.default_base_mile_rate,
        base_hour_rate=company.base_hour_rate if company else app_settings.default_base_hour_rate,
        currency=company.currency if company else app_settings.default_currency,
        invoice_due_days=company.invoice_due_days if company else app_settings.default_invoice_due_days,
        surcharge_factors=[RateAdjustmentResponse.model_validate(s) for s in surcharges],
        discounts=[RateAdjustmentResponse.model_validate(d) for d in discounts],
    )


@router.get("/rates", response_model=RateSettingsResponse)
async def get_rate_settings(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the rate configuration currently used for pricing.

    Only active surcharges and discounts are listed, in application order.
    """
    return await _build_rate_settings(db)


@router.put("/rates", response_model=RateSettingsResponse)
async def update_rate_settings(
    settings_data: RateSettingsUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update base rates and company details (admin-only).

    Omitted fields keep their current value. The first update creates the
    settings row, starting from the configured defaults.
    """
    company = await RateResolver.get_company_settings(db)
    if company is None:
        company = CompanySettings(
            base_mile_rate=app_settings.default_base_mile_rate,
            base_hour_rate=app_settings.default_base_hour_rate,
            currency=app_settings.default_currency,
            invoice_due_days=app_settings.default_invoice_due_days,
        )
        db.add(company)

    changes = settings_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(company, field, value)

    candidate = {
        "base_mile_rate": company.base_mile_rate,
        "base_hour_rate": company.base_hour_rate,
        "surcharge_factors": [],
        "discounts": [],
    }
    if not is_valid_rate_settings(candidate):
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Base rates must be non-negative numbers"
        )

    await db.commit()
    await db.refresh(company)

    await log_user_action(
        db, admin, AuditAction.RATE_SETTINGS_UPDATED, "company_settings", company.id,
        metadata=changes,
    )

    return await _build_rate_settings(db)


# Surcharge factors and discounts share one shape; these helpers serve both tables.

async def _list_adjustments(db: AsyncSession, model: Type, include_inactive: bool) -> List[RateAdjustmentResponse]:
    query = select(model).order_by(model.position, model.id)
    if not include_inactive:
        query = query.where(model.is_active == True)
    result = await db.execute(query)
    return [RateAdjustmentResponse.model_validate(row) for row in result.scalars().all()]


async def _create_adjustment(db, admin, model: Type, data: RateAdjustmentCreate, action: str, target_type: str):
    adjustment = model(**data.model_dump())
    db.add(adjustment)
    await db.commit()
    await db.refresh(adjustment)

    await log_user_action(
        db, admin, action, target_type, adjustment.id,
        metadata={"name": adjustment.name, "rate": adjustment.rate, "type": adjustment.type.value},
    )
    return RateAdjustmentResponse.model_validate(adjustment)


async def _update_adjustment(db, admin, model: Type, adjustment_id: int, data: RateAdjustmentUpdate, action: str, target_type: str):
    adjustment = await db.get(model, adjustment_id)
    if not adjustment:
        raise ResourceNotFoundError(target_type.replace("_", " ").capitalize(), adjustment_id)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(adjustment, field, value)

    await db.commit()
    await db.refresh(adjustment)

    await log_user_action(
        db, admin, action, target_type, adjustment.id,
        metadata={key: getattr(value, "value", value) for key, value in changes.items()},
    )
    return RateAdjustmentResponse.model_validate(adjustment)


async def _delete_adjustment(db, admin, model: Type, adjustment_id: int, action: str, target_type: str):
    adjustment = await db.get(model, adjustment_id)
    if not adjustment:
        raise ResourceNotFoundError(target_type.replace("_", " ").capitalize(), adjustment_id)

    name = adjustment.name
    await db.delete(adjustment)
    await db.commit()

    # Recorded trips keep their own snapshot of this rule
    await log_user_action(db, admin, action, target_type, adjustment_id, metadata={"name": name})


@router.get("/surcharge-factors", response_model=List[RateAdjustmentResponse])
async def list_surcharge_factors(
    include_inactive: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list_adjustments(db, SurchargeFactor, include_inactive)


@router.post("/surcharge-factors", response_model=RateAdjustmentResponse, status_code=status.HTTP_201_CREATED)
async def create_surcharge_factor(
    data: RateAdjustmentCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await _create_adjustment(db, admin, SurchargeFactor, data, AuditAction.SURCHARGE_CREATED, "surcharge_factor")


@router.patch("/surcharge-factors/{factor_id}", response_model=RateAdjustmentResponse)
async def update_surcharge_factor(
    factor_id: int,
    data: RateAdjustmentUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await _update_adjustment(db, admin, SurchargeFactor, factor_id, data, AuditAction.SURCHARGE_UPDATED, "surcharge_factor")


@router.delete("/surcharge-factors/{factor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_surcharge_factor(
    factor_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await _delete_adjustment(db, admin, SurchargeFactor, factor_id, AuditAction.SURCHARGE_DELETED, "surcharge_factor")


@router.get("/discounts", response_model=List[RateAdjustmentResponse])
async def list_discounts(
    include_inactive: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _list_adjustments(db, Discount, include_inactive)


@router.post("/discounts", response_model=RateAdjustmentResponse, status_code=status.HTTP_201_CREATED)
async def create_discount(
    data: RateAdjustmentCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await _create_adjustment(db, admin, Discount, data, AuditAction.DISCOUNT_CREATED, "discount")


@router.patch("/discounts/{discount_id}", response_model=RateAdjustmentResponse)
async def update_discount(
    discount_id: int,
    data: RateAdjustmentUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    return await _update_adjustment(db, admin, Discount, discount_id, data, AuditAction.DISCOUNT_UPDATED, "discount")


@router.delete("/discounts/{discount_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_discount(
    discount_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    await _delete_adjustment(db, admin, Discount, discount_id, AuditAction.DISCOUNT_DELETED, "discount")
