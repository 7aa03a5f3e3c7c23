# models.py
from django.conf import settings
from django.db import models


class Court(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)

    # Coordinates for map display
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    price_per_hour = models.DecimalField(max_digits=10, decimal_places=2)
    sports = models.TextField(blank=True, help_text="Comma separated, e.g. tennis, padel")
    amenities = models.TextField(blank=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name='courts',
        null=True,
        blank=True
    )
    is_active = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', 'name']

    def __str__(self):
        return self.name

    def get_sports_list(self):
        """Return sports as lowercase list"""
        return [s.strip().lower() for s in self.sports.split(',') if s.strip()]

    def get_amenities_list(self):
        return [a.strip() for a in self.amenities.split(',') if a.strip()]

    def is_managed_by(self, user):
        """Owners and admins may edit the court and its availability."""
        if user is None:
            return False
        return user.role == 'admin' or self.owner_id == user.id


class CourtAvailability(models.Model):
    DAY_CHOICES = [
        (0, 'Monday'),
        (1, 'Tuesday'),
        (2, 'Wednesday'),
        (3, 'Thursday'),
        (4, 'Friday'),
        (5, 'Saturday'),
        (6, 'Sunday'),
    ]

    court = models.ForeignKey(Court, on_delete=models.CASCADE, related_name='availability')
    day_of_week = models.PositiveSmallIntegerField(choices=DAY_CHOICES)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        ordering = ['day_of_week', 'start_time']
        verbose_name_plural = 'court availability'

    def __str__(self):
        return f"{self.court.name} - {self.get_day_of_week_display()} {self.get_time_label()}"

    def get_time_label(self):
        """Return formatted time label"""
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    def overlapping(self):
        """Other windows of the same court and weekday that share any time with this one."""
        return CourtAvailability.objects.filter(
            court_id=self.court_id,
            day_of_week=self.day_of_week,
            start_time__lt=self.end_time,
            end_time__gt=self.start_time,
        ).exclude(pk=self.pk)
