import logging

from django.contrib.auth.hashers import make_password, check_password
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from root_project.api import error_response, form_error_response, load_json_body
from Auth_Profile.forms import RegisterForm
from Auth_Profile.models import User
from Auth_Profile.utils import require_user

logger = logging.getLogger(__name__)


def serialize_user(user):
    return {
        'id': str(user.id),
        'nama': user.nama,
        'email': user.email,
        'nomor_handphone': user.nomor_handphone,
        'role': user.role,
    }


@csrf_exempt
@require_http_methods(["POST"])
def login_view(request):
    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        return error_response('Email and password are required')

    try:
        user = User.objects.get(email=email)
    except User.DoesNotExist:
        return error_response('Invalid email or password', status=401)

    if not check_password(password, user.password):
        return error_response('Invalid email or password', status=401)

    # Simpan user info di session
    request.session['user_id'] = str(user.id)
    request.session['email'] = user.email
    request.session['nama'] = user.nama

    return JsonResponse({
        'success': True,
        'message': 'Login successful',
        'user': serialize_user(user),
    })


@csrf_exempt
@require_http_methods(["POST"])
def register_view(request):
    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    form = RegisterForm(data=data)
    if not form.is_valid():
        return form_error_response(form)
    cleaned = form.cleaned_data
    email = cleaned['email']

    if User.objects.filter(email=email).exists():
        return error_response('Email is already registered', status=409)

    user = User.objects.create(
        nama=cleaned['nama'],
        email=email,
        nomor_handphone=cleaned['nomor_handphone'],
        password=make_password(cleaned['password']),
    )
    logger.info("Registered user %s", user.id)

    return JsonResponse({
        'success': True,
        'message': 'Registration successful',
        'redirect_url': '/login/',
    }, status=201)


@csrf_exempt
@require_http_methods(["POST"])
def logout_view(request):
    request.session.flush()
    return JsonResponse({'success': True})


@require_http_methods(["GET"])
def profile_view(request):
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error
    return JsonResponse({'user': serialize_user(current_user)})
