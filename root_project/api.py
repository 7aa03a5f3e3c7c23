"""Small JSON helpers shared by the API views of every app."""
import json

from django.http import JsonResponse


def error_response(message, status=400, **extra):
    payload = {'success': False, 'error': message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def load_json_body(request):
    """
    Decode the request body as a JSON object.
    Returns tuple (data, error_response); an empty body decodes to ``{}``.
    """
    if not request.body:
        return {}, None
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None, error_response('Invalid JSON')
    if not isinstance(data, dict):
        return None, error_response('JSON body must be an object')
    return data, None


def form_error_response(form):
    """Turn an invalid form into a 400 carrying the first message and the full error map."""
    errors = form.errors.get_json_data()
    first = next(iter(errors.values()))[0]['message'] if errors else 'Invalid data'
    return error_response(first, errors={field: [e['message'] for e in items] for field, items in errors.items()})
