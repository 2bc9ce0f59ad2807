"""Availability materialization and booking-conflict engine.

Pure, synchronous functions over a provider's ``ScheduleConfig`` and a
snapshot of confirmed bookings. The services in ``carebook.services`` do the
I/O and call into here.
"""

from carebook.engine.materializer import MaterializedSlot, materialize_slots
from carebook.engine.overlap import AnnotatedSlot, annotate_slots, overlaps
from carebook.engine.overrides import AdditionalWindows, DayOverride, FullBlackout
from carebook.engine.window import BookingWindow, booking_window, filter_bookable

__all__ = [
    "AdditionalWindows",
    "AnnotatedSlot",
    "BookingWindow",
    "DayOverride",
    "FullBlackout",
    "MaterializedSlot",
    "annotate_slots",
    "booking_window",
    "filter_bookable",
    "materialize_slots",
    "overlaps",
]
