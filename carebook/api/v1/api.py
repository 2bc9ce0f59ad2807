from fastapi import APIRouter

from carebook.api.v1.endpoints import bookings, health, patients, providers, schedule

api_router = APIRouter()

# Health check
api_router.include_router(health.router, tags=["health"])

# Provider management, availability and per-provider bookings
api_router.include_router(providers.router, prefix="/providers", tags=["providers"])

# Patient management endpoints
api_router.include_router(patients.router, prefix="/patients", tags=["patients"])

# Booking endpoints
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])

# Date-based availability lookup
api_router.include_router(schedule.router, prefix="/schedule", tags=["schedule"])
