from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.core.config import settings
from carebook.core.exceptions import ValidationError
from carebook.models.provider import Provider
from carebook.schemas.provider import ProviderCreate
from carebook.schemas.schedule import ScheduleConfig
from carebook.utils.validation import coerce_uuid

logger = structlog.get_logger(__name__)


def load_schedule_config(provider: Provider) -> ScheduleConfig:
    """Parse the provider's stored schedule document.

    Documents are validated on write, so a failure here means the stored row
    was edited out of band.
    """
    try:
        return ScheduleConfig.model_validate(provider.schedule_config or {})
    except ValueError as e:
        logger.error(
            "Stored schedule configuration is invalid",
            provider_id=provider.id,
            error=str(e),
        )
        raise ValidationError("Provider schedule configuration is invalid")


def default_schedule_config() -> ScheduleConfig:
    return ScheduleConfig(
        min_notice_minutes=settings.DEFAULT_MIN_NOTICE_MINUTES,
        max_days_ahead=settings.DEFAULT_MAX_DAYS_AHEAD,
    )


class ProviderService:
    """Service layer for provider records and their schedule configuration."""

    async def create_provider(
        self, db: AsyncSession, provider_data: ProviderCreate
    ) -> Provider:
        """Create a new provider."""
        config = provider_data.schedule_config or default_schedule_config()
        try:
            provider = Provider(
                name=provider_data.name,
                email=provider_data.email,
                schedule_config=config.model_dump(mode="json"),
                booking_version=0,
            )
            db.add(provider)
            await db.commit()
            await db.refresh(provider)

            logger.info(
                "Provider created successfully",
                provider_id=provider.id,
                provider_uuid=str(provider.uuid),
                timezone=config.timezone,
            )
            return provider

        except Exception as e:
            await db.rollback()
            logger.error("Failed to create provider", error=str(e))
            raise

    async def get_provider_by_uuid(
        self, db: AsyncSession, provider_uuid: UUID
    ) -> Optional[Provider]:
        """Get provider by UUID."""
        provider_uuid = coerce_uuid(provider_uuid)
        if provider_uuid is None:
            return None

        result = await db.execute(select(Provider).where(Provider.uuid == provider_uuid))
        provider = result.scalar_one_or_none()

        if not provider:
            logger.warning("Provider not found", provider_uuid=str(provider_uuid))

        return provider

    async def get_providers(
        self, db: AsyncSession, skip: int = 0, limit: int = 100
    ) -> List[Provider]:
        """Get list of providers with pagination."""
        result = await db.execute(
            select(Provider).order_by(Provider.id).offset(skip).limit(limit)
        )
        providers = result.scalars().all()

        logger.info("Retrieved providers", count=len(providers), skip=skip, limit=limit)
        return list(providers)

    async def update_schedule_config(
        self, db: AsyncSession, provider_uuid: UUID, config: ScheduleConfig
    ) -> Optional[Provider]:
        """Replace the provider's schedule configuration wholesale."""
        provider = await self.get_provider_by_uuid(db, provider_uuid)
        if not provider:
            return None

        try:
            provider.schedule_config = config.model_dump(mode="json")
            await db.commit()
            await db.refresh(provider)

            logger.info(
                "Provider schedule updated",
                provider_id=provider.id,
                timezone=config.timezone,
                rule_count=len(config.recurring_rules),
                exception_count=len(config.exceptions),
            )
            return provider

        except Exception as e:
            await db.rollback()
            logger.error(
                "Failed to update provider schedule",
                provider_id=provider.id,
                error=str(e),
            )
            raise


provider_service = ProviderService()
