from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

CENT = Decimal('0.01')


def calculate_booking_amount(price_per_hour, booking):
    """Hourly price times the booked duration, rounded to cents."""
    hours = Decimal(str(booking.duration_hours()))
    return (Decimal(price_per_hour) * hours).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_split_payment(total_amount, number_of_players):
    """Share of ``total_amount`` per player, rounded up to the next cent."""
    if number_of_players <= 0:
        raise ValueError("number_of_players must be positive")
    return (Decimal(total_amount) / number_of_players).quantize(CENT, rounding=ROUND_CEILING)
