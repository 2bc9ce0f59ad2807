from typing import List, Optional, Tuple
from uuid import UUID

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.core.exceptions import ConflictError, ConflictReason
from carebook.models.patient import Patient
from carebook.schemas.patient import PatientCreate, PatientUpdate
from carebook.utils.validation import coerce_uuid

logger = structlog.get_logger(__name__)


class PatientService:
    """Service layer for patient records."""

    async def create_patient(
        self, db: AsyncSession, patient_data: PatientCreate
    ) -> Patient:
        """Create a new patient."""
        await self._ensure_email_available(db, patient_data.email)

        try:
            patient = Patient(**patient_data.model_dump())
            db.add(patient)
            await db.commit()
            await db.refresh(patient)

            logger.info(
                "Patient created successfully",
                patient_id=patient.id,
                patient_uuid=str(patient.uuid),
            )
            return patient

        except IntegrityError as e:
            await db.rollback()
            logger.error(
                "Failed to create patient due to integrity constraint", error=str(e)
            )
            raise ConflictError(
                "email already exists", reason=ConflictReason.DUPLICATE
            )
        except Exception as e:
            await db.rollback()
            logger.error("Failed to create patient", error=str(e))
            raise

    async def get_patient_by_uuid(
        self, db: AsyncSession, patient_uuid: UUID
    ) -> Optional[Patient]:
        """Get patient by UUID."""
        patient_uuid = coerce_uuid(patient_uuid)
        if patient_uuid is None:
            return None

        result = await db.execute(select(Patient).where(Patient.uuid == patient_uuid))
        patient = result.scalar_one_or_none()

        if not patient:
            logger.warning("Patient not found", patient_uuid=str(patient_uuid))

        return patient

    async def get_patients(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Patient], int]:
        """List patients sorted by name, with optional case-insensitive search."""
        query = select(Patient)

        if search:
            search_term = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Patient.first_name).like(search_term),
                    func.lower(Patient.last_name).like(search_term),
                    func.lower(Patient.email).like(search_term),
                )
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        query = (
            query.order_by(Patient.last_name.asc(), Patient.first_name.asc())
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        patients = list(result.scalars().all())

        logger.info("Retrieved patients", count=len(patients), total=total)
        return patients, total

    async def update_patient(
        self, db: AsyncSession, patient_uuid: UUID, patient_update: PatientUpdate
    ) -> Optional[Patient]:
        """Update patient information."""
        patient = await self.get_patient_by_uuid(db, patient_uuid)
        if not patient:
            return None

        if patient_update.email != patient.email:
            await self._ensure_email_available(db, patient_update.email)

        for field, value in patient_update.model_dump(exclude_unset=True).items():
            setattr(patient, field, value)

        try:
            await db.commit()
            await db.refresh(patient)
            logger.info("Patient updated successfully", patient_id=patient.id)
            return patient
        except IntegrityError as e:
            await db.rollback()
            logger.error("Failed to update patient", error=str(e))
            raise ConflictError(
                "email already exists", reason=ConflictReason.DUPLICATE
            )

    async def delete_patient(self, db: AsyncSession, patient_uuid: UUID) -> bool:
        """Delete a patient."""
        patient = await self.get_patient_by_uuid(db, patient_uuid)
        if not patient:
            return False

        try:
            await db.delete(patient)
            await db.commit()
            logger.info("Patient deleted", patient_uuid=str(patient_uuid))
            return True
        except IntegrityError as e:
            await db.rollback()
            logger.error(
                "Failed to delete patient with bookings",
                patient_uuid=str(patient_uuid),
                error=str(e),
            )
            raise ConflictError(
                "Patient has bookings and cannot be deleted",
                reason=ConflictReason.INVALID_TRANSITION,
            )

    async def _ensure_email_available(self, db: AsyncSession, email: str) -> None:
        existing = await db.execute(select(Patient.id).where(Patient.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                "email already exists", reason=ConflictReason.DUPLICATE
            )


patient_service = PatientService()
