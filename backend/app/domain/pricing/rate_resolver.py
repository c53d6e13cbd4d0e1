"""
Rate Settings Resolver.

Materializes the complete rate configuration used by the fare calculator.
Follows priority:
1. Most recent company settings row
2. Configured default rates (no settings saved yet)
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from backend.app.core.config import settings as app_settings
from backend.app.domain.pricing.fare_calculator import RateAdjustment, RateSettings
from backend.app.models.company_settings import CompanySettings
from backend.app.models.discount import Discount
from backend.app.models.surcharge_factor import SurchargeFactor

logger = logging.getLogger(__name__)


class RateResolver:

    @staticmethod
    async def get_company_settings(db: AsyncSession) -> Optional[CompanySettings]:
        """Return the current company settings row, if one has been saved."""
        result = await db.execute(
            select(CompanySettings).order_by(CompanySettings.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_surcharges(db: AsyncSession, include_inactive: bool = False) -> list[SurchargeFactor]:
        query = select(SurchargeFactor).order_by(SurchargeFactor.position, SurchargeFactor.id)
        if not include_inactive:
            query = query.where(SurchargeFactor.is_active == True)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def list_discounts(db: AsyncSession, include_inactive: bool = False) -> list[Discount]:
        query = select(Discount).order_by(Discount.position, Discount.id)
        if not include_inactive:
            query = query.where(Discount.is_active == True)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def load(db: AsyncSession) -> RateSettings:
        """
        Build a fully materialized RateSettings snapshot.

        Only active adjustments are included, ordered by position then id.
        """
        company = await RateResolver.get_company_settings(db)

        if company is None:
            logger.info("No company settings saved, pricing with default rates")
            base_mile_rate = app_settings.default_base_mile_rate
            base_hour_rate = app_settings.default_base_hour_rate
        else:
            base_mile_rate = company.base_mile_rate
            base_hour_rate = company.base_hour_rate

        surcharges = await RateResolver.list_surcharges(db)
        discounts = await RateResolver.list_discounts(db)

        return RateSettings(
            base_mile_rate=base_mile_rate,
            base_hour_rate=base_hour_rate,
            surcharge_factors=tuple(
                RateAdjustment(id=s.id, name=s.name, rate=s.rate, type=s.type) for s in surcharges
            ),
            discounts=tuple(
                RateAdjustment(id=d.id, name=d.name, rate=d.rate, type=d.type) for d in discounts
            ),
        )
