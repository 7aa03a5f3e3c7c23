import uuid
from datetime import datetime

from django.conf import settings
from django.db import models
from django.utils import timezone

from Court.models import Court


class Booking(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_FAILED = 'failed'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    court = models.ForeignKey(Court, on_delete=models.CASCADE, related_name='bookings')
    booked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bookings',
    )
    team = models.ForeignKey(
        'Team.Team',
        on_delete=models.SET_NULL,
        related_name='bookings',
        null=True,
        blank=True,
    )
    booking_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    sport = models.CharField(max_length=50)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)

    # Open matches let other players join the booking
    is_open_match = models.BooleanField(default=False)
    match_title = models.CharField(max_length=200, blank=True)
    max_participants = models.PositiveIntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['booking_date', 'start_time']
        indexes = [
            models.Index(fields=['court', 'booking_date'], name='booking_court_date_idx'),
        ]

    def __str__(self):
        return f"{self.court.name} - {self.booking_date} {self.get_time_label()}"

    def get_time_label(self):
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    def duration_hours(self):
        start = datetime.combine(self.booking_date, self.start_time)
        end = datetime.combine(self.booking_date, self.end_time)
        return (end - start).total_seconds() / 3600


class MatchParticipant(models.Model):
    STATUS_JOINED = 'joined'
    STATUS_WITHDRAWN = 'withdrawn'
    STATUS_CHOICES = [
        (STATUS_JOINED, 'Joined'),
        (STATUS_WITHDRAWN, 'Withdrawn'),
    ]

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='participants')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='match_participations',
    )
    team = models.ForeignKey(
        'Team.Team',
        on_delete=models.SET_NULL,
        related_name='match_participations',
        null=True,
        blank=True,
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_JOINED)
    joined_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ('booking', 'user')

    def __str__(self):
        return f"{self.user} @ {self.booking_id} ({self.status})"


class Review(models.Model):
    court = models.ForeignKey(Court, on_delete=models.CASCADE, related_name='reviews')
    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name='review')
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews',
    )
    rating = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.court.name} - {self.rating}/5"
