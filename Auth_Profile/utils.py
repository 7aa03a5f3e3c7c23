from django.core.exceptions import ValidationError
from django.shortcuts import redirect

from root_project.api import error_response
from .models import User


def get_current_user(request):
    """Return the user whose id is stored in the session, or None."""
    user_id = request.session.get('user_id')
    if not user_id:
        return None

    try:
        return User.objects.get(id=user_id)
    except (User.DoesNotExist, ValidationError, ValueError):
        return None


def require_user(request, *, json_mode=False):
    """
    Ensure request has authenticated user.
    Returns tuple (user, error_response). If user is None, error_response contains redirect/JSON response.
    """
    user = get_current_user(request)
    if user:
        return user, None

    if json_mode:
        return None, error_response('Authentication required', status=401)
    return None, redirect('/login/')


def is_admin(user):
    return bool(user) and user.role == User.ROLE_ADMIN
