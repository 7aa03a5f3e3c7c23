import logging

from django.db.models import Q
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from Auth_Profile.utils import get_current_user, require_user, is_admin
from root_project.api import error_response, form_error_response, load_json_body

from .forms import CourtForm, CourtAvailabilityForm
from .models import Court, CourtAvailability

logger = logging.getLogger(__name__)


def serialize_court(court, current_user=None):
    return {
        'id': court.id,
        'name': court.name,
        'description': court.description,
        'address': court.address,
        'city': court.city,
        'latitude': float(court.latitude) if court.latitude is not None else None,
        'longitude': float(court.longitude) if court.longitude is not None else None,
        'price_per_hour': str(court.price_per_hour),
        'sports': court.get_sports_list(),
        'amenities': court.get_amenities_list(),
        'status': court.status,
        'is_active': court.is_active,
        'owner_id': str(court.owner_id) if court.owner_id else None,
        'owned_by_user': bool(current_user) and court.owner_id == current_user.id,
    }


def serialize_availability(slot):
    return {
        'id': slot.id,
        'court_id': slot.court_id,
        'day_of_week': slot.day_of_week,
        'start_time': slot.start_time.strftime('%H:%M'),
        'end_time': slot.end_time.strftime('%H:%M'),
        'is_available': slot.is_available,
    }


def _get_court(court_id):
    try:
        return Court.objects.get(id=court_id), None
    except Court.DoesNotExist:
        return None, error_response('Court not found', status=404)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def courts_collection(request):
    """
    GET  /court/api/courts/?sport=...&city=...&q=...&status=...
    POST /court/api/courts/
    """
    if request.method == 'POST':
        return _create_court(request)

    current_user = get_current_user(request)
    status = request.GET.get('status') or Court.STATUS_APPROVED
    sport = request.GET.get('sport', '').strip().lower()
    city = request.GET.get('city', '').strip()
    query = request.GET.get('q', '').strip()

    courts_qs = Court.objects.filter(status=status, is_active=True)

    if city:
        courts_qs = courts_qs.filter(city__icontains=city)

    if query:
        courts_qs = courts_qs.filter(
            Q(name__icontains=query) |
            Q(address__icontains=query) |
            Q(city__icontains=query)
        )

    courts = list(courts_qs)
    # sports is a free-text list, so exact membership is checked after fetching
    if sport:
        courts = [court for court in courts if sport in court.get_sports_list()]

    return JsonResponse({'courts': [serialize_court(court, current_user) for court in courts]})


def _create_court(request):
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    form = CourtForm(data=data)
    if not form.is_valid():
        return form_error_response(form)

    court = form.save(commit=False)
    court.owner = current_user
    # Admin submissions skip moderation
    if is_admin(current_user):
        court.status = Court.STATUS_APPROVED
        court.is_active = True
    else:
        court.status = Court.STATUS_PENDING
        court.is_active = False
    court.save()
    logger.info("Court %s submitted by %s with status %s", court.id, current_user.id, court.status)

    return JsonResponse({'success': True, 'court': serialize_court(court, current_user)}, status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "DELETE"])
def court_detail(request, court_id):
    """
    GET    /court/api/courts/<id>/
    PUT    /court/api/courts/<id>/   (owner or admin)
    DELETE /court/api/courts/<id>/   (owner or admin)
    """
    court, missing = _get_court(court_id)
    if missing:
        return missing

    if request.method == 'GET':
        return JsonResponse({'court': serialize_court(court, get_current_user(request))})

    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    if not court.is_managed_by(current_user):
        return error_response('Forbidden', status=403)

    if request.method == 'DELETE':
        court.delete()
        logger.info("Court %s deleted by %s", court_id, current_user.id)
        return JsonResponse({'success': True})

    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    merged = model_to_dict(court, fields=CourtForm.Meta.fields)
    merged.update(data)
    form = CourtForm(data=merged, instance=court)
    if not form.is_valid():
        return form_error_response(form)

    court = form.save(commit=False)
    # Only admins moderate
    if is_admin(current_user):
        if data.get('status') in dict(Court.STATUS_CHOICES):
            court.status = data['status']
        if 'is_active' in data:
            court.is_active = bool(data['is_active'])
    court.save()

    return JsonResponse({'success': True, 'court': serialize_court(court, current_user)})


@csrf_exempt
@require_http_methods(["GET", "POST", "PUT", "DELETE"])
def court_availability(request, court_id):
    """
    Weekly availability windows of a court.
    GET    /court/api/courts/<id>/availability/
    POST   body: {"day_of_week": 0, "start_time": "08:00", "end_time": "12:00", "is_available": true}
    PUT    body: {"availability_id": 1, ...changed fields}
    DELETE ?availability_id=1
    """
    court, missing = _get_court(court_id)
    if missing:
        return missing

    if request.method == 'GET':
        slots = CourtAvailability.objects.filter(court=court).order_by('day_of_week', 'start_time')
        return JsonResponse({'availability': [serialize_availability(slot) for slot in slots]})

    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    if not court.is_managed_by(current_user):
        return error_response('You can only manage availability for your own courts', status=403)

    if request.method == 'DELETE':
        availability_id = request.GET.get('availability_id')
        if not availability_id:
            return error_response('availability_id is required')
        try:
            deleted, _ = CourtAvailability.objects.filter(id=availability_id, court=court).delete()
        except ValueError:
            return error_response('availability_id must be a number')
        if not deleted:
            return error_response('Availability slot not found', status=404)
        return JsonResponse({'success': True, 'message': 'Availability slot deleted'})

    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    if request.method == 'POST':
        if data.get('day_of_week') is None or not data.get('start_time') or not data.get('end_time'):
            return error_response('day_of_week, start_time, and end_time are required')
        data.setdefault('is_available', True)
        form = CourtAvailabilityForm(data=data, instance=CourtAvailability(court=court))
        status = 201
    else:
        availability_id = data.get('availability_id')
        if not availability_id:
            return error_response('availability_id is required')
        try:
            slot = CourtAvailability.objects.get(id=availability_id, court=court)
        except (CourtAvailability.DoesNotExist, ValueError):
            return error_response('Availability slot not found', status=404)
        merged = model_to_dict(slot, fields=CourtAvailabilityForm.Meta.fields)
        merged.update({key: value for key, value in data.items() if key != 'availability_id'})
        form = CourtAvailabilityForm(data=merged, instance=slot)
        status = 200

    if not form.is_valid():
        return form_error_response(form)

    slot = form.save(commit=False)
    if slot.overlapping().exists():
        return error_response('This time slot overlaps with an existing availability', status=409)
    slot.save()

    return JsonResponse({'success': True, 'availability': serialize_availability(slot)}, status=status)
