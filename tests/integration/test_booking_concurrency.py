import asyncio
from datetime import datetime, time, timedelta, timezone

import pytest
from sqlalchemy import func, select

from carebook.core.exceptions import ConflictError
from carebook.models.booking import Booking
from carebook.models.patient import Patient
from carebook.models.provider import Provider
from carebook.schemas.booking import BookingCreate
from carebook.schemas.schedule import ScheduleConfig
from carebook.services.booking import BookingService


@pytest.fixture
async def participants(db):
    config = ScheduleConfig(
        recurring_rules=[
            {
                "days_of_week": [1, 2, 3, 4, 5],
                "start_time": "09:00",
                "end_time": "17:00",
                "slot_duration": 30,
            }
        ],
        min_notice_minutes=0,
        max_days_ahead=60,
    )
    provider = Provider(
        name="Dr. Ada Lovelace",
        email="ada@example.com",
        schedule_config=config.model_dump(mode="json"),
        booking_version=0,
    )
    patients = [
        Patient(first_name="Jane", last_name="Doe", email="jane@example.com"),
        Patient(first_name="John", last_name="Roe", email="john@example.com"),
    ]
    db.add(provider)
    db.add_all(patients)
    await db.commit()
    return provider, patients


def slot_start():
    today = datetime.now(timezone.utc).date()
    monday = today + timedelta(days=7 - today.weekday())
    return datetime.combine(monday, time(10), tzinfo=timezone.utc)


@pytest.mark.integration
async def test_concurrent_bookings_for_same_slot(session_factory, participants):
    provider, patients = participants
    start = slot_start()

    async def attempt(patient):
        async with session_factory() as session:
            return await BookingService(session).create_booking(
                BookingCreate(
                    provider_id=provider.uuid,
                    patient_id=patient.uuid,
                    start=start,
                    end=start + timedelta(minutes=30),
                )
            )

    results = await asyncio.gather(
        attempt(patients[0]), attempt(patients[1]), return_exceptions=True
    )

    assert sum(isinstance(r, Booking) for r in results) == 1
    assert sum(isinstance(r, ConflictError) for r in results) == 1

    async with session_factory() as session:
        count = await session.scalar(
            select(func.count()).select_from(Booking).where(
                Booking.provider_id == provider.id
            )
        )
        version = await session.scalar(
            select(Provider.booking_version).where(Provider.id == provider.id)
        )
    assert count == 1
    assert version == 1


@pytest.mark.integration
async def test_concurrent_bookings_for_different_slots(session_factory, participants):
    provider, patients = participants
    start = slot_start()

    async def attempt(patient, offset):
        async with session_factory() as session:
            return await BookingService(session).create_booking(
                BookingCreate(
                    provider_id=provider.uuid,
                    patient_id=patient.uuid,
                    start=start + offset,
                    end=start + offset + timedelta(minutes=30),
                )
            )

    results = await asyncio.gather(
        attempt(patients[0], timedelta(0)),
        attempt(patients[1], timedelta(hours=2)),
        return_exceptions=True,
    )

    assert all(isinstance(r, Booking) for r in results)
