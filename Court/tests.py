import json
from datetime import time
from decimal import Decimal

from django.test import Client, TestCase
from django.urls import reverse

from Auth_Profile.models import User
from .forms import CourtForm, normalize_csv
from .models import Court, CourtAvailability


class CourtViewTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create(
            nama='Owner',
            email='owner@example.com',
            nomor_handphone='08123456789',
            password='hashed',
        )
        cls.other_user = User.objects.create(
            nama='Other',
            email='other@example.com',
            nomor_handphone='08100000000',
            password='hashed',
        )
        cls.admin = User.objects.create(
            nama='Admin',
            email='admin@example.com',
            password='hashed',
            role=User.ROLE_ADMIN,
        )
        cls.court = Court.objects.create(
            name='Court A',
            address='123 Memory Street',
            city='Jakarta',
            price_per_hour=100000,
            sports='basketball, futsal',
            amenities='Parking, Restroom, Canteen',
            owner=cls.user,
            status=Court.STATUS_APPROVED,
            is_active=True,
        )
        cls.other_court = Court.objects.create(
            name='Court B',
            address='456 Memory Street',
            city='Depok',
            price_per_hour=120000,
            sports='tennis',
            owner=cls.other_user,
            status=Court.STATUS_APPROVED,
            is_active=True,
        )
        cls.pending_court = Court.objects.create(
            name='Court C',
            city='Bogor',
            price_per_hour=90000,
            sports='tennis',
            owner=cls.other_user,
        )

    def setUp(self):
        self.client = self._login(self.user)

    def _login(self, user):
        client = Client()
        session = client.session
        session['user_id'] = str(user.id)
        session.save()
        return client

    def _json(self, client, method, url, payload):
        return getattr(client, method)(url, data=json.dumps(payload), content_type='application/json')

    def _availability_url(self, court=None):
        return reverse('Court:court_availability', args=[(court or self.court).id])

    def test_login_required_routes(self):
        json_cases = [
            ('post', reverse('Court:courts')),
            ('put', reverse('Court:court_detail', args=[self.court.id])),
            ('delete', reverse('Court:court_detail', args=[self.court.id])),
            ('post', self._availability_url()),
            ('put', self._availability_url()),
            ('delete', self._availability_url()),
        ]
        for method, url in json_cases:
            with self.subTest(method=method, url=url):
                self.assertEqual(getattr(Client(), method)(url, content_type='application/json').status_code, 401)

    def test_list_only_approved_active_courts(self):
        response = Client().get(reverse('Court:courts'))
        self.assertEqual(response.status_code, 200)
        names = {court['name'] for court in response.json()['courts']}
        self.assertEqual(names, {'Court A', 'Court B'})

        response = Client().get(reverse('Court:courts'), {'status': 'pending'})
        self.assertEqual(response.json()['courts'], [])

    def test_list_filters(self):
        cases = [
            ({'sport': 'tennis'}, ['Court B']),
            ({'sport': 'Basketball'}, ['Court A']),
            ({'city': 'jak'}, ['Court A']),
            ({'q': '456'}, ['Court B']),
            ({'sport': 'padel'}, []),
        ]
        for params, expected in cases:
            with self.subTest(params=params):
                response = self.client.get(reverse('Court:courts'), params)
                self.assertEqual([court['name'] for court in response.json()['courts']], expected)

    def test_get_court_detail_variants(self):
        cases = [
            ('exists', self.court.id, 200),
            ('missing', 9999, 404),
        ]
        for name, cid, status in cases:
            with self.subTest(name=name):
                response = self.client.get(reverse('Court:court_detail', args=[cid]))
                self.assertEqual(response.status_code, status)

        body = self.client.get(reverse('Court:court_detail', args=[self.court.id])).json()['court']
        self.assertEqual(body['sports'], ['basketball', 'futsal'])
        self.assertEqual(body['amenities'], ['Parking', 'Restroom', 'Canteen'])
        self.assertTrue(body['owned_by_user'])

    def test_submit_court_starts_pending(self):
        response = self._json(self.client, 'post', reverse('Court:courts'), {
            'name': 'Court New',
            'address': 'New Street 1',
            'city': 'Bandung',
            'price_per_hour': 150000,
            'sports': ['Tennis', 'Padel'],
            'amenities': 'Parking',
            'latitude': -6.9,
            'longitude': 107.6,
        })
        self.assertEqual(response.status_code, 201)
        court = Court.objects.get(name='Court New')
        self.assertEqual(court.owner, self.user)
        self.assertEqual(court.status, Court.STATUS_PENDING)
        self.assertFalse(court.is_active)
        self.assertEqual(court.get_sports_list(), ['tennis', 'padel'])

    def test_admin_submission_is_approved(self):
        response = self._json(self._login(self.admin), 'post', reverse('Court:courts'), {
            'name': 'Court Admin',
            'price_per_hour': 50000,
            'sports': 'badminton',
        })
        self.assertEqual(response.status_code, 201)
        court = Court.objects.get(name='Court Admin')
        self.assertEqual(court.status, Court.STATUS_APPROVED)
        self.assertTrue(court.is_active)

    def test_submit_court_validation(self):
        base = {'name': 'Court Bad', 'price_per_hour': 1000, 'sports': 'tennis'}
        cases = [
            ('short_name', {'name': 'ab'}),
            ('negative_price', {'price_per_hour': -5}),
            ('no_sports', {'sports': []}),
            ('latitude', {'latitude': 120}),
            ('longitude', {'longitude': -200}),
        ]
        for name, overrides in cases:
            with self.subTest(name=name):
                payload = dict(base, **overrides)
                response = self._json(self.client, 'post', reverse('Court:courts'), payload)
                self.assertEqual(response.status_code, 400)
                self.assertFalse(response.json()['success'])

    def test_update_court_permissions(self):
        url = reverse('Court:court_detail', args=[self.court.id])
        response = self._json(self._login(self.other_user), 'put', url, {'name': 'Hijacked'})
        self.assertEqual(response.status_code, 403)

        response = self._json(self.client, 'put', url, {'name': 'Court A Prime', 'status': 'rejected'})
        self.assertEqual(response.status_code, 200)
        self.court.refresh_from_db()
        self.assertEqual(self.court.name, 'Court A Prime')
        # owners cannot moderate their own court
        self.assertEqual(self.court.status, Court.STATUS_APPROVED)

        response = self._json(self._login(self.admin), 'put', url, {'status': 'rejected', 'is_active': False})
        self.assertEqual(response.status_code, 200)
        self.court.refresh_from_db()
        self.assertEqual(self.court.status, Court.STATUS_REJECTED)
        self.assertFalse(self.court.is_active)

    def test_delete_court(self):
        url = reverse('Court:court_detail', args=[self.other_court.id])
        self.assertEqual(self.client.delete(url).status_code, 403)
        self.assertEqual(self._login(self.admin).delete(url).status_code, 200)
        self.assertFalse(Court.objects.filter(id=self.other_court.id).exists())

    def test_availability_create_and_list(self):
        url = self._availability_url()
        response = self._json(self.client, 'post', url, {'day_of_week': 2, 'start_time': '13:00', 'end_time': '17:00'})
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['availability']['is_available'])

        response = self._json(self.client, 'post', url, {'day_of_week': 0, 'start_time': '08:00', 'end_time': '12:00'})
        self.assertEqual(response.status_code, 201)

        response = Client().get(url)
        self.assertEqual(response.status_code, 200)
        slots = response.json()['availability']
        self.assertEqual([(s['day_of_week'], s['start_time']) for s in slots], [(0, '08:00'), (2, '13:00')])

    def test_availability_overlap_rejected(self):
        CourtAvailability.objects.create(court=self.court, day_of_week=0, start_time=time(8, 0), end_time=time(12, 0))
        url = self._availability_url()
        cases = [
            ('overlap', {'day_of_week': 0, 'start_time': '11:00', 'end_time': '13:00'}, 409),
            ('adjacent', {'day_of_week': 0, 'start_time': '12:00', 'end_time': '14:00'}, 201),
            ('other_day', {'day_of_week': 1, 'start_time': '09:00', 'end_time': '10:00'}, 201),
        ]
        for name, payload, status in cases:
            with self.subTest(name=name):
                self.assertEqual(self._json(self.client, 'post', url, payload).status_code, status)

    def test_availability_validation(self):
        url = self._availability_url()
        cases = [
            ('missing_fields', {'day_of_week': 0}),
            ('end_before_start', {'day_of_week': 0, 'start_time': '12:00', 'end_time': '08:00'}),
            ('bad_day', {'day_of_week': 9, 'start_time': '08:00', 'end_time': '09:00'}),
        ]
        for name, payload in cases:
            with self.subTest(name=name):
                self.assertEqual(self._json(self.client, 'post', url, payload).status_code, 400)

    def test_availability_requires_owner_or_admin(self):
        url = self._availability_url()
        payload = {'day_of_week': 3, 'start_time': '08:00', 'end_time': '09:00'}
        self.assertEqual(self._json(self._login(self.other_user), 'post', url, payload).status_code, 403)
        self.assertEqual(self._json(self._login(self.admin), 'post', url, payload).status_code, 201)

    def test_availability_update_and_delete(self):
        slot = CourtAvailability.objects.create(court=self.court, day_of_week=4, start_time=time(8, 0), end_time=time(10, 0))
        CourtAvailability.objects.create(court=self.court, day_of_week=4, start_time=time(12, 0), end_time=time(14, 0))
        url = self._availability_url()

        response = self._json(self.client, 'put', url, {'availability_id': slot.id, 'is_available': False, 'end_time': '11:00'})
        self.assertEqual(response.status_code, 200)
        slot.refresh_from_db()
        self.assertFalse(slot.is_available)
        self.assertEqual(slot.end_time, time(11, 0))

        response = self._json(self.client, 'put', url, {'availability_id': slot.id, 'end_time': '13:00'})
        self.assertEqual(response.status_code, 409)

        self.assertEqual(self._json(self.client, 'put', url, {'end_time': '13:00'}).status_code, 400)
        self.assertEqual(self._json(self.client, 'put', url, {'availability_id': 9999}).status_code, 404)

        self.assertEqual(self.client.delete(url).status_code, 400)
        self.assertEqual(self.client.delete(f'{url}?availability_id=abc').status_code, 400)
        self.assertEqual(self.client.delete(f'{url}?availability_id={slot.id}').status_code, 200)
        self.assertFalse(CourtAvailability.objects.filter(id=slot.id).exists())
        self.assertEqual(self.client.delete(f'{url}?availability_id={slot.id}').status_code, 404)


class CourtFormTests(TestCase):
    def test_normalize_csv(self):
        self.assertEqual(normalize_csv(['Tennis', ' Padel ', '']), 'Tennis, Padel')
        self.assertEqual(normalize_csv('a,,b'), 'a, b')
        self.assertEqual(normalize_csv(None), '')

    def test_form_lowercases_sports(self):
        form = CourtForm(data={'name': 'Court X', 'price_per_hour': '10', 'sports': 'Tennis, PADEL'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['sports'], 'tennis, padel')
        self.assertEqual(form.cleaned_data['price_per_hour'], Decimal('10'))
