"""
Booking conflict detection.

Reservations are compared as half-open ``[start_time, end_time)`` ranges, so a
booking that ends at 10:00 does not collide with one that starts at 10:00.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from .models import Booking

logger = logging.getLogger(__name__)

# Fail-safe: a failed lookup is reported as a conflict.
CONFLICT_ON_QUERY_FAILURE = True


def check_booking_conflict(court_id, booking_date, start_time, end_time, exclude_booking_id=None):
    """
    Return True when a non-cancelled booking of ``court_id`` on ``booking_date``
    overlaps ``[start_time, end_time)``.

    ``exclude_booking_id`` removes one booking from the candidates, which lets a
    booking being edited be checked against everything but itself. The caller
    is responsible for ``start_time < end_time``.
    """
    try:
        overlapping = Booking.objects.filter(
            court_id=court_id,
            booking_date=booking_date,
            start_time__lt=end_time,
            end_time__gt=start_time,
        ).exclude(status=Booking.STATUS_CANCELLED)

        if exclude_booking_id:
            overlapping = overlapping.exclude(id=exclude_booking_id)

        return overlapping.exists()
    except (DatabaseError, ValidationError, ValueError, TypeError):
        logger.exception(
            "Error checking booking conflict for court %s on %s %s-%s",
            court_id, booking_date, start_time, end_time,
        )
        return CONFLICT_ON_QUERY_FAILURE
