import json
from django.test import TestCase, Client, RequestFactory
from django.urls import reverse, resolve
from django.contrib.auth.hashers import make_password
from django.contrib.sessions.middleware import SessionMiddleware
from Auth_Profile.forms import RegisterForm
from Auth_Profile.models import User
from Auth_Profile import views
from Auth_Profile.utils import get_current_user, require_user, is_admin


class AuthProfileURLTests(TestCase):
    def test_url_names_resolve(self):
        self.assertEqual(resolve(reverse("Auth_Profile:login")).func, views.login_view)
        self.assertEqual(resolve(reverse("Auth_Profile:register")).func, views.register_view)
        self.assertEqual(resolve(reverse("Auth_Profile:logout")).func, views.logout_view)
        self.assertEqual(resolve(reverse("Auth_Profile:profile")).func, views.profile_view)


class UserModelTests(TestCase):
    def test_str_returns_email(self):
        u = User.objects.create(
            nama="Elliot",
            email="elliot@example.com",
            nomor_handphone="08123456789",
            password=make_password("supersecret"),
        )
        self.assertEqual(str(u), "elliot@example.com")
        self.assertEqual(u.role, User.ROLE_USER)

    def test_create_superuser_is_admin(self):
        u = User.objects.create_superuser(email="root@example.com", password="supersecret", nama="Root")
        self.assertTrue(u.is_staff)
        self.assertTrue(u.check_password("supersecret"))
        self.assertEqual(u.role, User.ROLE_ADMIN)


class BaseAuthTestCase(TestCase):
    def setUp(self):
        self.client = Client()
        self.password_plain = "verystrongpassword"
        self.user = User.objects.create(
            nama="Tester",
            email="tester@example.com",
            nomor_handphone="0811223344",
            password=make_password(self.password_plain),
        )

    def login_session(self):
        """Simulate an authenticated session by setting session keys."""
        session = self.client.session
        session["user_id"] = str(self.user.id)
        session.save()

    def post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")


class LoginViewTests(BaseAuthTestCase):
    def test_login_success_sets_session(self):
        res = self.post_json(reverse("Auth_Profile:login"), {
            "email": self.user.email,
            "password": self.password_plain,
        })
        self.assertEqual(res.status_code, 200)
        self.assertTrue(res.json()["success"])
        self.assertEqual(self.client.session["user_id"], str(self.user.id))

    def test_login_failures(self):
        cases = [
            ("missing", {"email": self.user.email}, 400),
            ("wrong_password", {"email": self.user.email, "password": "nope-nope"}, 401),
            ("unknown_email", {"email": "ghost@example.com", "password": "whatever1"}, 401),
        ]
        for name, payload, status in cases:
            with self.subTest(name=name):
                res = self.post_json(reverse("Auth_Profile:login"), payload)
                self.assertEqual(res.status_code, status)
                self.assertNotIn("user_id", self.client.session)

    def test_login_rejects_get(self):
        self.assertEqual(self.client.get(reverse("Auth_Profile:login")).status_code, 405)


class RegisterViewTests(BaseAuthTestCase):
    def payload(self, **overrides):
        data = {
            "nama": "New Player",
            "email": "new@example.com",
            "nomor_handphone": "+62-812-0000",
            "password": "longenough",
            "password2": "longenough",
        }
        data.update(overrides)
        return data

    def test_register_success(self):
        res = self.post_json(reverse("Auth_Profile:register"), self.payload())
        self.assertEqual(res.status_code, 201)
        user = User.objects.get(email="new@example.com")
        self.assertTrue(user.check_password("longenough"))
        self.assertEqual(user.role, User.ROLE_USER)

    def test_register_validation(self):
        cases = [
            ("missing", {"nama": ""}, 400),
            ("bad_email", {"email": "not-an-email"}, 400),
            ("bad_phone", {"nomor_handphone": "08abc"}, 400),
            ("mismatch", {"password2": "different1"}, 400),
            ("short", {"password": "short", "password2": "short"}, 400),
            ("numeric_email", {"email": 123}, 400),
            ("list_phone", {"nomor_handphone": ["0812"]}, 400),
            ("null_password", {"password": None}, 400),
            ("duplicate", {"email": self.user.email}, 409),
        ]
        for name, overrides, status in cases:
            with self.subTest(name=name):
                res = self.post_json(reverse("Auth_Profile:register"), self.payload(**overrides))
                self.assertEqual(res.status_code, status)
                self.assertFalse(res.json()["success"])

    def test_register_invalid_json(self):
        res = self.client.post(reverse("Auth_Profile:register"), data="[1, 2", content_type="application/json")
        self.assertEqual(res.status_code, 400)


class ProfileAndLogoutTests(BaseAuthTestCase):
    def test_profile_requires_login(self):
        self.assertEqual(self.client.get(reverse("Auth_Profile:profile")).status_code, 401)

    def test_profile_returns_current_user(self):
        self.login_session()
        res = self.client.get(reverse("Auth_Profile:profile"))
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["user"]["email"], self.user.email)

    def test_logout_flushes_session(self):
        self.login_session()
        res = self.client.post(reverse("Auth_Profile:logout"))
        self.assertEqual(res.status_code, 200)
        self.assertNotIn("user_id", self.client.session)


class AuthHelperTests(BaseAuthTestCase):
    def _request(self, user_id=None):
        request = RequestFactory().get("/")
        SessionMiddleware(lambda req: None).process_request(request)
        if user_id is not None:
            request.session["user_id"] = user_id
        return request

    def test_get_current_user(self):
        cases = [
            ("no_session", None, None),
            ("valid", str(self.user.id), self.user),
            ("unknown", "00000000-0000-0000-0000-000000000000", None),
            ("garbage", "not-a-uuid", None),
        ]
        for name, user_id, expected in cases:
            with self.subTest(name=name):
                self.assertEqual(get_current_user(self._request(user_id)), expected)

    def test_require_user_modes(self):
        user, error = require_user(self._request(), json_mode=True)
        self.assertIsNone(user)
        self.assertEqual(error.status_code, 401)

        user, error = require_user(self._request())
        self.assertEqual(error.status_code, 302)
        self.assertEqual(error.url, "/login/")

        user, error = require_user(self._request(str(self.user.id)), json_mode=True)
        self.assertEqual(user, self.user)
        self.assertIsNone(error)

    def test_is_admin(self):
        self.assertFalse(is_admin(None))
        self.assertFalse(is_admin(self.user))
        self.user.role = User.ROLE_ADMIN
        self.assertTrue(is_admin(self.user))


class RegisterFormTests(TestCase):
    def test_numeric_phone_is_accepted_as_text(self):
        form = RegisterForm(data={
            "nama": "Number Phone",
            "email": "num@example.com",
            "nomor_handphone": 8123456,
            "password": "longenough",
            "password2": "longenough",
        })
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data["nomor_handphone"], "8123456")

    def test_mismatched_passwords(self):
        form = RegisterForm(data={
            "nama": "Mismatch",
            "email": "mm@example.com",
            "nomor_handphone": "0812",
            "password": "longenough",
            "password2": "different1",
        })
        self.assertFalse(form.is_valid())
        self.assertEqual(form.non_field_errors(), ["Passwords do not match"])
