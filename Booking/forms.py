from django import forms
from django.utils import timezone

from .models import Booking

TIME_INPUT_FORMATS = ['%H:%M', '%H:%M:%S']


class BookingForm(forms.Form):
    court_id = forms.IntegerField()
    booking_date = forms.DateField(input_formats=['%Y-%m-%d'])
    start_time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    end_time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    sport = forms.CharField(max_length=50)
    team_id = forms.IntegerField(required=False)
    user_id = forms.UUIDField(required=False)
    total_amount = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    status = forms.ChoiceField(choices=Booking.STATUS_CHOICES, required=False)
    is_open_match = forms.BooleanField(required=False)
    match_title = forms.CharField(max_length=200, required=False)
    max_participants = forms.IntegerField(min_value=1, required=False)

    def __init__(self, *args, allow_past=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.allow_past = allow_past

    def clean_sport(self):
        return self.cleaned_data['sport'].strip().lower()

    def clean_booking_date(self):
        booking_date = self.cleaned_data['booking_date']
        if not self.allow_past and booking_date < timezone.localdate():
            raise forms.ValidationError('Booking date must be in the future.')
        return booking_date

    def clean(self):
        cleaned = super().clean()
        start = cleaned.get('start_time')
        end = cleaned.get('end_time')
        if start and end and start >= end:
            raise forms.ValidationError('Start time must be before end time.')
        return cleaned


class ReviewForm(forms.Form):
    booking_id = forms.UUIDField()
    rating = forms.IntegerField(min_value=1, max_value=5)
    comment = forms.CharField(min_length=10, required=False, error_messages={
        'min_length': 'Comment must be at least 10 characters',
    })
