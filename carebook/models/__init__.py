# Import all models to ensure they are registered with SQLAlchemy
from . import booking, patient, provider

__all__ = [
    "booking",
    "patient",
    "provider",
]
