from decimal import Decimal

from django import forms

from .models import Court, CourtAvailability


def normalize_csv(value):
    """Accept either a list or a comma separated string and return a clean comma separated string."""
    if value in (None, '', 'null'):
        return ''
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(',')
    return ', '.join(str(item).strip() for item in items if str(item).strip())


class CourtForm(forms.ModelForm):
    class Meta:
        model = Court
        fields = [
            'name',
            'description',
            'address',
            'city',
            'latitude',
            'longitude',
            'price_per_hour',
            'sports',
            'amenities',
        ]

    def __init__(self, *args, **kwargs):
        data = kwargs.get('data')
        if data is not None:
            data = dict(data)
            for field in ('sports', 'amenities'):
                if field in data:
                    data[field] = normalize_csv(data[field])
            kwargs['data'] = data
        super().__init__(*args, **kwargs)

    def clean_name(self):
        name = (self.cleaned_data.get('name') or '').strip()
        if len(name) < 3:
            raise forms.ValidationError('Court name must be at least 3 characters.')
        return name

    def clean_price_per_hour(self):
        price = self.cleaned_data.get('price_per_hour')
        if price is None:
            return price
        if price <= Decimal('0'):
            raise forms.ValidationError('Price must be positive.')
        return price

    def clean_latitude(self):
        latitude = self.cleaned_data.get('latitude')
        if latitude is not None and not Decimal('-90') <= latitude <= Decimal('90'):
            raise forms.ValidationError('Latitude must be between -90 and 90.')
        return latitude

    def clean_longitude(self):
        longitude = self.cleaned_data.get('longitude')
        if longitude is not None and not Decimal('-180') <= longitude <= Decimal('180'):
            raise forms.ValidationError('Longitude must be between -180 and 180.')
        return longitude

    def clean_sports(self):
        sports = self.cleaned_data.get('sports') or ''
        if not sports:
            raise forms.ValidationError('Select at least one sport.')
        return sports.lower()


class CourtAvailabilityForm(forms.ModelForm):
    start_time = forms.TimeField(input_formats=['%H:%M', '%H:%M:%S'])
    end_time = forms.TimeField(input_formats=['%H:%M', '%H:%M:%S'])

    class Meta:
        model = CourtAvailability
        fields = ['day_of_week', 'start_time', 'end_time', 'is_available']

    def clean(self):
        cleaned = super().clean()
        start = cleaned.get('start_time')
        end = cleaned.get('end_time')
        if start and end and start >= end:
            raise forms.ValidationError('Start time must be before end time.')
        return cleaned
