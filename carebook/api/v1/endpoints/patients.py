from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from carebook.api.deps.database import get_db
from carebook.core.exceptions import NotFoundError
from carebook.schemas.patient import (
    PatientCreate,
    PatientListResponse,
    PatientResponse,
    PatientUpdate,
)
from carebook.services.patient import patient_service

router = APIRouter()


@router.post("/", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(patient_data: PatientCreate, db: AsyncSession = Depends(get_db)):
    """Create a new patient."""
    patient = await patient_service.create_patient(db, patient_data)
    return PatientResponse.from_patient(patient)


@router.get("/", response_model=PatientListResponse)
async def get_patients(
    search: Optional[str] = Query(None, description="Search name or email"),
    skip: int = Query(0, ge=0, description="Number of patients to skip"),
    limit: int = Query(50, ge=1, le=100, description="Number of patients to return"),
    db: AsyncSession = Depends(get_db),
):
    """List patients sorted by name."""
    patients, total = await patient_service.get_patients(
        db, search=search, skip=skip, limit=limit
    )
    return PatientListResponse(
        patients=[PatientResponse.from_patient(p) for p in patients],
        count=len(patients),
        total=total,
    )


@router.get("/{patient_uuid}", response_model=PatientResponse)
async def get_patient(patient_uuid: UUID, db: AsyncSession = Depends(get_db)):
    """Get patient by UUID."""
    patient = await patient_service.get_patient_by_uuid(db, patient_uuid)
    if not patient:
        raise NotFoundError("Patient")
    return PatientResponse.from_patient(patient)


@router.put("/{patient_uuid}", response_model=PatientResponse)
async def update_patient(
    patient_uuid: UUID,
    patient_update: PatientUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update patient information."""
    patient = await patient_service.update_patient(db, patient_uuid, patient_update)
    if not patient:
        raise NotFoundError("Patient")
    return PatientResponse.from_patient(patient)


@router.delete("/{patient_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(patient_uuid: UUID, db: AsyncSession = Depends(get_db)):
    """Delete a patient without bookings."""
    deleted = await patient_service.delete_patient(db, patient_uuid)
    if not deleted:
        raise NotFoundError("Patient")
