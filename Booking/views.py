import logging

from django.core.exceptions import ValidationError
from django.db.models import Count, Q
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from Auth_Profile.models import User
from Auth_Profile.utils import require_user, is_admin
from Court.models import Court
from Team.models import Team
from root_project.api import error_response, form_error_response, load_json_body

from .checks import check_booking_conflict
from .forms import BookingForm, ReviewForm
from .models import Booking, MatchParticipant, Review
from .pricing import calculate_booking_amount, calculate_split_payment

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = 'This time slot is already booked'


def serialize_booking(booking):
    return {
        'id': str(booking.id),
        'court': {
            'id': booking.court_id,
            'name': booking.court.name,
            'address': booking.court.address,
            'city': booking.court.city,
        },
        'booked_by': {
            'id': str(booking.booked_by_id),
            'nama': booking.booked_by.nama,
        },
        'team': {'id': booking.team_id, 'name': booking.team.name} if booking.team_id else None,
        'booking_date': booking.booking_date.strftime('%Y-%m-%d'),
        'start_time': booking.start_time.strftime('%H:%M'),
        'end_time': booking.end_time.strftime('%H:%M'),
        'sport': booking.sport,
        'total_amount': str(booking.total_amount),
        'status': booking.status,
        'payment_status': booking.payment_status,
        'is_open_match': booking.is_open_match,
        'match_title': booking.match_title,
        'max_participants': booking.max_participants,
    }


def _bookings_queryset():
    return Booking.objects.select_related('court', 'booked_by', 'team')


def _lookup(model, pk, label):
    if pk is None:
        return None, None
    try:
        return model.objects.get(pk=pk), None
    except model.DoesNotExist:
        return None, error_response(f'{label} not found', status=404)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def bookings_collection(request):
    """
    GET  /booking/api/bookings/?user_id=...&court_id=...&status=...
    POST /booking/api/bookings/
    """
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    if request.method == 'POST':
        return _create_booking(request, current_user)

    bookings = _bookings_queryset()
    filters = {
        'booked_by_id': request.GET.get('user_id'),
        'court_id': request.GET.get('court_id'),
        'status': request.GET.get('status'),
    }
    try:
        bookings = bookings.filter(**{field: value for field, value in filters.items() if value})
        data = [serialize_booking(booking) for booking in bookings.order_by('booking_date', 'start_time')]
    except (ValidationError, ValueError):
        return error_response('Invalid filter value')

    return JsonResponse({'bookings': data})


def _create_booking(request, current_user):
    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    form = BookingForm(data=data)
    if not form.is_valid():
        return form_error_response(form)
    cleaned = form.cleaned_data

    court, missing = _lookup(Court, cleaned['court_id'], 'Court')
    if missing:
        return missing

    team, missing = _lookup(Team, cleaned.get('team_id'), 'Team')
    if missing:
        return missing

    admin = is_admin(current_user)
    booked_by = current_user
    # Admins may book on behalf of another user
    if admin and cleaned.get('user_id'):
        booked_by, missing = _lookup(User, cleaned['user_id'], 'User')
        if missing:
            return missing

    if check_booking_conflict(court.id, cleaned['booking_date'], cleaned['start_time'], cleaned['end_time']):
        return error_response(CONFLICT_MESSAGE, status=409)

    booking = Booking(
        court=court,
        booked_by=booked_by,
        team=team,
        booking_date=cleaned['booking_date'],
        start_time=cleaned['start_time'],
        end_time=cleaned['end_time'],
        sport=cleaned['sport'],
        status=Booking.STATUS_CONFIRMED,
        payment_status=Booking.PAYMENT_PAID if admin else Booking.PAYMENT_PENDING,
        is_open_match=cleaned.get('is_open_match') or False,
        match_title=cleaned.get('match_title') or '',
        max_participants=cleaned.get('max_participants'),
    )
    total_amount = cleaned.get('total_amount')
    booking.total_amount = total_amount if total_amount is not None else calculate_booking_amount(court.price_per_hour, booking)
    booking.save()
    logger.info(
        "Booking %s created for court %s on %s %s by %s",
        booking.id, court.id, booking.booking_date, booking.get_time_label(), booked_by.id,
    )

    return JsonResponse({'success': True, 'booking': serialize_booking(booking)}, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
def booking_detail(request, booking_id):
    """
    GET    /booking/api/bookings/<id>/
    PUT    /booking/api/bookings/<id>/   (admin only)
    DELETE /booking/api/bookings/<id>/   (admin or the booker)
    """
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    try:
        booking = _bookings_queryset().get(id=booking_id)
    except Booking.DoesNotExist:
        return error_response('Booking not found', status=404)

    if request.method == 'GET':
        data = serialize_booking(booking)
        if booking.team_id:
            players = booking.team.approved_member_count
            if players:
                data['amount_per_player'] = str(calculate_split_payment(booking.total_amount, players))
        return JsonResponse({'booking': data})

    if request.method == 'DELETE':
        if not is_admin(current_user) and booking.booked_by_id != current_user.id:
            return error_response('You can only delete your own bookings', status=403)
        booking.delete()
        logger.info("Booking %s deleted by %s", booking_id, current_user.id)
        return JsonResponse({'success': True, 'message': 'Booking deleted successfully'})

    if not is_admin(current_user):
        return error_response('Only admins can update bookings', status=403)

    return _update_booking(request, booking)


def _update_booking(request, booking):
    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    merged = {
        'court_id': booking.court_id,
        'booking_date': booking.booking_date.strftime('%Y-%m-%d'),
        'start_time': booking.start_time.strftime('%H:%M'),
        'end_time': booking.end_time.strftime('%H:%M'),
        'sport': booking.sport,
        'total_amount': booking.total_amount,
    }
    merged.update(data)

    form = BookingForm(data=merged, allow_past=True)
    if not form.is_valid():
        return form_error_response(form)
    cleaned = form.cleaned_data

    court, missing = _lookup(Court, cleaned['court_id'], 'Court')
    if missing:
        return missing

    if check_booking_conflict(
        court.id,
        cleaned['booking_date'],
        cleaned['start_time'],
        cleaned['end_time'],
        exclude_booking_id=booking.id,
    ):
        return error_response(CONFLICT_MESSAGE, status=409)

    booking.court = court
    booking.booking_date = cleaned['booking_date']
    booking.start_time = cleaned['start_time']
    booking.end_time = cleaned['end_time']
    booking.sport = cleaned['sport']
    if cleaned.get('total_amount') is not None:
        booking.total_amount = cleaned['total_amount']

    # Only update status if provided
    if cleaned.get('status'):
        booking.status = cleaned['status']

    if cleaned.get('user_id'):
        booked_by, missing = _lookup(User, cleaned['user_id'], 'User')
        if missing:
            return missing
        booking.booked_by = booked_by

    if 'team_id' in data:
        team, missing = _lookup(Team, cleaned.get('team_id'), 'Team')
        if missing:
            return missing
        booking.team = team

    booking.save()
    return JsonResponse({'success': True, 'booking': serialize_booking(booking)})


def serialize_participant(participant):
    return {
        'id': participant.id,
        'booking_id': str(participant.booking_id),
        'user_id': str(participant.user_id),
        'team_id': participant.team_id,
        'status': participant.status,
        'joined_at': participant.joined_at.isoformat(),
    }


def serialize_review(review):
    return {
        'id': review.id,
        'court_id': review.court_id,
        'booking_id': str(review.booking_id),
        'reviewer': {
            'id': str(review.reviewer_id),
            'nama': review.reviewer.nama,
        },
        'rating': review.rating,
        'comment': review.comment,
        'created_at': review.created_at.isoformat(),
    }


@require_http_methods(["GET"])
def open_matches(request):
    """GET /booking/api/matches/open/ - upcoming bookings other players can join."""
    matches = (
        _bookings_queryset()
        .filter(is_open_match=True, booking_date__gte=timezone.localdate())
        .exclude(status=Booking.STATUS_CANCELLED)
        .annotate(participant_count=Count(
            'participants',
            filter=Q(participants__status=MatchParticipant.STATUS_JOINED),
        ))
        .order_by('booking_date', 'start_time')
    )

    data = []
    for match in matches:
        item = serialize_booking(match)
        item['participant_count'] = match.participant_count
        data.append(item)
    return JsonResponse({'matches': data})


@csrf_exempt
@require_http_methods(["POST"])
def join_match(request, booking_id):
    """
    POST /booking/api/matches/<id>/join/
    Joins an open match, or rejoins it after withdrawing.
    """
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    try:
        booking = Booking.objects.get(id=booking_id)
    except Booking.DoesNotExist:
        return error_response('Match not found', status=404)

    if not booking.is_open_match:
        return error_response('This booking is not an open match')

    joined = booking.participants.filter(status=MatchParticipant.STATUS_JOINED).count()
    if booking.max_participants and joined >= booking.max_participants:
        return error_response('Match is full')

    participant = booking.participants.filter(user=current_user).first()
    if participant is None:
        participant = MatchParticipant.objects.create(booking=booking, user=current_user)
        status = 201
    elif participant.status == MatchParticipant.STATUS_JOINED:
        return error_response('Already joined')
    else:
        participant.status = MatchParticipant.STATUS_JOINED
        participant.joined_at = timezone.now()
        participant.save(update_fields=['status', 'joined_at'])
        status = 200
    logger.info("User %s joined match %s", current_user.id, booking.id)

    return JsonResponse({'success': True, 'participant': serialize_participant(participant)}, status=status)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def reviews_collection(request):
    """
    GET  /booking/api/reviews/?court_id=...
    POST /booking/api/reviews/   body: {"booking_id": "...", "rating": 5, "comment": "..."}
    """
    if request.method == 'GET':
        court_id = request.GET.get('court_id')
        if not court_id:
            return error_response('court_id is required')
        try:
            reviews = list(Review.objects.select_related('reviewer').filter(court_id=court_id))
        except ValueError:
            return error_response('Invalid filter value')
        average = round(sum(review.rating for review in reviews) / len(reviews), 1) if reviews else None
        return JsonResponse({
            'reviews': [serialize_review(review) for review in reviews],
            'average_rating': average,
        })

    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    form = ReviewForm(data=data)
    if not form.is_valid():
        return form_error_response(form)
    cleaned = form.cleaned_data

    try:
        booking = Booking.objects.get(id=cleaned['booking_id'])
    except Booking.DoesNotExist:
        return error_response('Invalid booking ID')

    if booking.booked_by_id != current_user.id:
        return error_response('You can only review your own bookings', status=403)

    if Review.objects.filter(booking=booking).exists():
        return error_response("You've already reviewed this booking", status=409)

    review = Review.objects.create(
        court_id=booking.court_id,
        booking=booking,
        reviewer=current_user,
        rating=cleaned['rating'],
        comment=cleaned.get('comment') or '',
    )
    logger.info("Review %s added for court %s by %s", review.id, booking.court_id, current_user.id)

    return JsonResponse({'success': True, 'review': serialize_review(review)}, status=201)
