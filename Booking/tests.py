import json
from datetime import date, time, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.db import DatabaseError
from django.test import Client, TestCase
from django.urls import reverse
from django.utils import timezone

from Auth_Profile.models import User
from Court.models import Court
from Team.models import Team, TeamMember
from .checks import CONFLICT_ON_QUERY_FAILURE, check_booking_conflict
from .models import Booking, MatchParticipant, Review
from .pricing import calculate_booking_amount, calculate_split_payment


def make_user(email, role=User.ROLE_USER):
    return User.objects.create(
        nama=email.split('@')[0].title(),
        email=email,
        nomor_handphone='08123456789',
        password='hashed',
        role=role,
    )


def make_court(owner, name='Court 1', price='100000'):
    return Court.objects.create(
        name=name,
        address='123 Memory Street',
        city='Jakarta',
        price_per_hour=Decimal(price),
        sports='tennis, padel',
        owner=owner,
        status=Court.STATUS_APPROVED,
        is_active=True,
    )


class CheckBookingConflictTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user('player@example.com')
        cls.court = make_court(cls.user)
        cls.other_court = make_court(cls.user, name='Court 2')
        cls.day = date(2024, 6, 1)
        cls.existing = Booking.objects.create(
            court=cls.court,
            booked_by=cls.user,
            booking_date=cls.day,
            start_time=time(9, 0),
            end_time=time(10, 0),
            sport='tennis',
            status=Booking.STATUS_CONFIRMED,
        )

    def test_overlapping_interval_conflicts(self):
        self.assertTrue(check_booking_conflict(self.court.id, self.day, time(9, 30), time(10, 30)))

    def test_touching_boundaries_do_not_conflict(self):
        cases = [
            ('after', time(10, 0), time(11, 0)),
            ('before', time(8, 0), time(9, 0)),
        ]
        for name, start, end in cases:
            with self.subTest(name=name):
                self.assertFalse(check_booking_conflict(self.court.id, self.day, start, end))

    def test_containing_and_contained_intervals_conflict(self):
        cases = [
            ('contains', time(8, 0), time(11, 0)),
            ('inside', time(9, 15), time(9, 45)),
            ('same', time(9, 0), time(10, 0)),
            ('starts_before', time(8, 30), time(9, 1)),
        ]
        for name, start, end in cases:
            with self.subTest(name=name):
                self.assertTrue(check_booking_conflict(self.court.id, self.day, start, end))

    def test_overlap_is_symmetric(self):
        other = Booking.objects.create(
            court=self.court,
            booked_by=self.user,
            booking_date=self.day,
            start_time=time(9, 30),
            end_time=time(11, 0),
            sport='tennis',
            status=Booking.STATUS_PENDING,
        )
        self.assertTrue(check_booking_conflict(
            self.court.id, self.day, other.start_time, other.end_time, exclude_booking_id=other.id,
        ))
        self.assertTrue(check_booking_conflict(
            self.court.id, self.day, self.existing.start_time, self.existing.end_time,
            exclude_booking_id=self.existing.id,
        ))

    def test_accepts_string_date_and_times(self):
        self.assertTrue(check_booking_conflict(self.court.id, '2024-06-01', '09:30', '10:30'))
        self.assertFalse(check_booking_conflict(self.court.id, '2024-06-01', '10:00', '11:00'))

    def test_excluding_own_booking_reports_no_conflict(self):
        self.assertFalse(check_booking_conflict(
            self.court.id, self.day, time(9, 0), time(10, 0), exclude_booking_id=self.existing.id,
        ))
        self.assertFalse(check_booking_conflict(
            self.court.id, self.day, time(9, 0), time(10, 0), exclude_booking_id=str(self.existing.id),
        ))

    def test_cancelled_bookings_are_ignored(self):
        self.existing.status = Booking.STATUS_CANCELLED
        self.existing.save()
        self.assertFalse(check_booking_conflict(self.court.id, self.day, time(9, 0), time(10, 0)))

    def test_other_court_or_date_does_not_conflict(self):
        self.assertFalse(check_booking_conflict(self.other_court.id, self.day, time(9, 0), time(10, 0)))
        self.assertFalse(check_booking_conflict(self.court.id, self.day + timedelta(days=1), time(9, 0), time(10, 0)))

    def test_query_failure_reports_conflict(self):
        self.assertTrue(CONFLICT_ON_QUERY_FAILURE)
        with patch.object(Booking.objects, 'filter', side_effect=DatabaseError('connection lost')):
            with self.assertLogs('Booking.checks', level='ERROR') as logs:
                result = check_booking_conflict(self.court.id, self.day, time(12, 0), time(13, 0))
        self.assertIs(result, True)
        self.assertIn('Error checking booking conflict', logs.output[0])

    def test_invalid_identifiers_fail_safe(self):
        with self.assertLogs('Booking.checks', level='ERROR'):
            self.assertTrue(check_booking_conflict('court-1', self.day, time(12, 0), time(13, 0)))
        with self.assertLogs('Booking.checks', level='ERROR'):
            self.assertTrue(check_booking_conflict(
                self.court.id, self.day, time(12, 0), time(13, 0), exclude_booking_id='not-a-uuid',
            ))


class PricingTests(TestCase):
    def test_split_payment_rounds_up_to_cents(self):
        self.assertEqual(calculate_split_payment(Decimal('100'), 3), Decimal('33.34'))
        self.assertEqual(calculate_split_payment(Decimal('100'), 4), Decimal('25.00'))

    def test_split_payment_requires_players(self):
        with self.assertRaises(ValueError):
            calculate_split_payment(Decimal('100'), 0)

    def test_booking_amount_uses_duration(self):
        booking = Booking(booking_date=date(2024, 6, 1), start_time=time(9, 0), end_time=time(10, 30))
        self.assertEqual(calculate_booking_amount(Decimal('100000'), booking), Decimal('150000.00'))


class BookingApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user('player@example.com')
        cls.other_user = make_user('other@example.com')
        cls.admin = make_user('admin@example.com', role=User.ROLE_ADMIN)
        cls.court = make_court(cls.admin)

    def setUp(self):
        self.client = self._login(self.user)
        self.day = timezone.localdate() + timedelta(days=7)

    def _login(self, user):
        client = Client()
        session = client.session
        session['user_id'] = str(user.id)
        session.save()
        return client

    def _payload(self, **overrides):
        payload = {
            'court_id': self.court.id,
            'booking_date': self.day.strftime('%Y-%m-%d'),
            'start_time': '09:00',
            'end_time': '10:00',
            'sport': 'tennis',
        }
        payload.update(overrides)
        return payload

    def _post(self, client, payload):
        return client.post(reverse('Booking:bookings'), data=json.dumps(payload), content_type='application/json')

    def _put(self, client, booking_id, payload):
        return client.put(
            reverse('Booking:booking_detail', args=[booking_id]),
            data=json.dumps(payload),
            content_type='application/json',
        )

    def _book(self, user=None, start=time(9, 0), end=time(10, 0)):
        return Booking.objects.create(
            court=self.court,
            booked_by=user or self.user,
            booking_date=self.day,
            start_time=start,
            end_time=end,
            sport='tennis',
            status=Booking.STATUS_CONFIRMED,
        )

    def test_login_required(self):
        booking = self._book()
        cases = [
            ('get', reverse('Booking:bookings')),
            ('post', reverse('Booking:bookings')),
            ('get', reverse('Booking:booking_detail', args=[booking.id])),
            ('put', reverse('Booking:booking_detail', args=[booking.id])),
            ('delete', reverse('Booking:booking_detail', args=[booking.id])),
        ]
        for method, url in cases:
            with self.subTest(method=method, url=url):
                response = getattr(Client(), method)(url, content_type='application/json')
                self.assertEqual(response.status_code, 401)

    def test_create_booking(self):
        response = self._post(self.client, self._payload())
        self.assertEqual(response.status_code, 201)
        body = response.json()['booking']
        self.assertEqual(body['status'], Booking.STATUS_CONFIRMED)
        self.assertEqual(body['payment_status'], Booking.PAYMENT_PENDING)
        self.assertEqual(body['total_amount'], '100000.00')
        booking = Booking.objects.get(id=body['id'])
        self.assertEqual(booking.booked_by, self.user)

    def test_create_booking_with_explicit_amount(self):
        response = self._post(self.client, self._payload(total_amount='75000'))
        self.assertEqual(response.status_code, 201)
        booking = Booking.objects.get(id=response.json()['booking']['id'])
        self.assertEqual(booking.total_amount, Decimal('75000'))

    def test_create_booking_conflict(self):
        self._book(user=self.other_user)
        response = self._post(self.client, self._payload(start_time='09:30', end_time='10:30'))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['error'], 'This time slot is already booked')

    def test_create_booking_adjacent_slot(self):
        self._book(user=self.other_user)
        response = self._post(self.client, self._payload(start_time='10:00', end_time='11:00'))
        self.assertEqual(response.status_code, 201)

    def test_create_booking_blocked_when_check_fails(self):
        with patch.object(Booking.objects, 'filter', side_effect=DatabaseError('boom')):
            with self.assertLogs('Booking.checks', level='ERROR'):
                response = self._post(self.client, self._payload())
        self.assertEqual(response.status_code, 409)
        self.assertFalse(Booking.objects.exists())

    def test_create_booking_validation(self):
        cases = [
            ('missing_court', {'court_id': None}, 400),
            ('bad_time', {'start_time': '9am'}, 400),
            ('end_before_start', {'start_time': '11:00', 'end_time': '10:00'}, 400),
            ('past_date', {'booking_date': (timezone.localdate() - timedelta(days=1)).strftime('%Y-%m-%d')}, 400),
            ('unknown_court', {'court_id': 9999}, 404),
            ('unknown_team', {'team_id': 9999}, 404),
        ]
        for name, overrides, status in cases:
            with self.subTest(name=name):
                response = self._post(self.client, self._payload(**overrides))
                self.assertEqual(response.status_code, status)
        self.assertFalse(Booking.objects.exists())

    def test_invalid_json(self):
        response = self.client.post(reverse('Booking:bookings'), data='{not json', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_admin_books_on_behalf_of_user(self):
        response = self._post(self._login(self.admin), self._payload(user_id=str(self.other_user.id)))
        self.assertEqual(response.status_code, 201)
        booking = Booking.objects.get(id=response.json()['booking']['id'])
        self.assertEqual(booking.booked_by, self.other_user)
        self.assertEqual(booking.payment_status, Booking.PAYMENT_PAID)

    def test_regular_user_cannot_book_for_others(self):
        response = self._post(self.client, self._payload(user_id=str(self.other_user.id)))
        self.assertEqual(response.status_code, 201)
        booking = Booking.objects.get(id=response.json()['booking']['id'])
        self.assertEqual(booking.booked_by, self.user)

    def test_list_filters(self):
        mine = self._book()
        self._book(user=self.other_user, start=time(12, 0), end=time(13, 0))

        response = self.client.get(reverse('Booking:bookings'), {'user_id': str(self.user.id)})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([b['id'] for b in response.json()['bookings']], [str(mine.id)])

        response = self.client.get(reverse('Booking:bookings'), {'court_id': self.court.id})
        self.assertEqual(len(response.json()['bookings']), 2)

        response = self.client.get(reverse('Booking:bookings'), {'status': Booking.STATUS_CANCELLED})
        self.assertEqual(response.json()['bookings'], [])

        response = self.client.get(reverse('Booking:bookings'), {'user_id': 'nope'})
        self.assertEqual(response.status_code, 400)

    def test_detail_includes_split_for_team(self):
        team = Team.objects.create(name='Smashers', sport='tennis', max_players=4, owner=self.user)
        TeamMember.objects.create(team=team, player=self.user, role=TeamMember.ROLE_OWNER, status=TeamMember.STATUS_APPROVED)
        TeamMember.objects.create(team=team, player=self.other_user, status=TeamMember.STATUS_APPROVED)
        booking = self._book()
        booking.team = team
        booking.total_amount = Decimal('100000')
        booking.save()

        response = self.client.get(reverse('Booking:booking_detail', args=[booking.id]))
        self.assertEqual(response.status_code, 200)
        body = response.json()['booking']
        self.assertEqual(body['team']['name'], 'Smashers')
        self.assertEqual(body['amount_per_player'], '50000.00')

    def test_detail_not_found(self):
        response = self.client.get(reverse('Booking:booking_detail', args=['00000000-0000-0000-0000-000000000000']))
        self.assertEqual(response.status_code, 404)

    def test_update_requires_admin(self):
        booking = self._book()
        response = self._put(self.client, booking.id, {'status': Booking.STATUS_CANCELLED})
        self.assertEqual(response.status_code, 403)

    def test_admin_update_same_slot_excludes_itself(self):
        booking = self._book()
        response = self._put(self._login(self.admin), booking.id, {
            'start_time': '09:00',
            'end_time': '10:00',
            'status': Booking.STATUS_PENDING,
        })
        self.assertEqual(response.status_code, 200)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.STATUS_PENDING)

    def test_admin_update_into_conflict(self):
        booking = self._book()
        self._book(user=self.other_user, start=time(11, 0), end=time(12, 0))
        response = self._put(self._login(self.admin), booking.id, {'start_time': '10:30', 'end_time': '11:30'})
        self.assertEqual(response.status_code, 409)
        booking.refresh_from_db()
        self.assertEqual(booking.start_time, time(9, 0))

    def test_admin_update_changes_booker_and_team(self):
        booking = self._book()
        team = Team.objects.create(name='Smashers', sport='tennis', max_players=4, owner=self.other_user)
        response = self._put(self._login(self.admin), booking.id, {
            'user_id': str(self.other_user.id),
            'team_id': team.id,
        })
        self.assertEqual(response.status_code, 200)
        booking.refresh_from_db()
        self.assertEqual(booking.booked_by, self.other_user)
        self.assertEqual(booking.team, team)

    def test_delete_permissions(self):
        booking = self._book()
        response = self._login(self.other_user).delete(reverse('Booking:booking_detail', args=[booking.id]))
        self.assertEqual(response.status_code, 403)

        response = self.client.delete(reverse('Booking:booking_detail', args=[booking.id]))
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Booking.objects.filter(id=booking.id).exists())

    def test_admin_can_delete_any_booking(self):
        booking = self._book()
        response = self._login(self.admin).delete(reverse('Booking:booking_detail', args=[booking.id]))
        self.assertEqual(response.status_code, 200)


class OpenMatchApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.host = make_user('host@example.com')
        cls.player = make_user('player@example.com')
        cls.court = make_court(cls.host)

    def setUp(self):
        self.day = timezone.localdate() + timedelta(days=3)
        self.match = self._match(max_participants=2)

    def _login(self, user):
        client = Client()
        session = client.session
        session['user_id'] = str(user.id)
        session.save()
        return client

    def _match(self, day=None, start=time(18, 0), end=time(20, 0), **fields):
        values = {'is_open_match': True, 'match_title': 'Evening doubles', 'status': Booking.STATUS_CONFIRMED}
        values.update(fields)
        return Booking.objects.create(
            court=self.court,
            booked_by=self.host,
            booking_date=day or self.day,
            start_time=start,
            end_time=end,
            sport='tennis',
            **values,
        )

    def _join(self, user, booking=None):
        return self._login(user).post(reverse('Booking:join_match', args=[(booking or self.match).id]))

    def test_open_matches_lists_upcoming_open_bookings(self):
        self._match(start=time(8, 0), end=time(9, 0), is_open_match=False)
        self._match(start=time(10, 0), end=time(11, 0), status=Booking.STATUS_CANCELLED)
        self._match(day=timezone.localdate() - timedelta(days=1))
        MatchParticipant.objects.create(booking=self.match, user=self.player)

        response = Client().get(reverse('Booking:open_matches'))
        self.assertEqual(response.status_code, 200)
        matches = response.json()['matches']
        self.assertEqual([m['id'] for m in matches], [str(self.match.id)])
        self.assertEqual(matches[0]['participant_count'], 1)
        self.assertEqual(matches[0]['match_title'], 'Evening doubles')

    def test_join_requires_login(self):
        response = Client().post(reverse('Booking:join_match', args=[self.match.id]))
        self.assertEqual(response.status_code, 401)

    def test_join_and_already_joined(self):
        response = self._join(self.player)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['participant']['status'], MatchParticipant.STATUS_JOINED)

        response = self._join(self.player)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Already joined')

    def test_rejoin_after_withdrawing(self):
        MatchParticipant.objects.create(booking=self.match, user=self.player, status=MatchParticipant.STATUS_WITHDRAWN)
        response = self._join(self.player)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            MatchParticipant.objects.get(booking=self.match, user=self.player).status,
            MatchParticipant.STATUS_JOINED,
        )

    def test_full_match_rejects_new_players(self):
        MatchParticipant.objects.create(booking=self.match, user=self.host)
        MatchParticipant.objects.create(booking=self.match, user=make_user('third@example.com'))
        response = self._join(self.player)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Match is full')
        self.assertFalse(MatchParticipant.objects.filter(user=self.player).exists())

    def test_withdrawn_players_do_not_fill_the_match(self):
        MatchParticipant.objects.create(booking=self.match, user=self.host)
        MatchParticipant.objects.create(
            booking=self.match,
            user=make_user('third@example.com'),
            status=MatchParticipant.STATUS_WITHDRAWN,
        )
        self.assertEqual(self._join(self.player).status_code, 201)

    def test_join_rejects_private_or_missing_booking(self):
        private = self._match(start=time(8, 0), end=time(9, 0), is_open_match=False)
        response = self._join(self.player, private)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'This booking is not an open match')

        url = reverse('Booking:join_match', args=['00000000-0000-0000-0000-000000000000'])
        self.assertEqual(self._login(self.player).post(url).status_code, 404)


class ReviewApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user('player@example.com')
        cls.other_user = make_user('other@example.com')
        cls.court = make_court(cls.other_user)
        cls.booking = Booking.objects.create(
            court=cls.court,
            booked_by=cls.user,
            booking_date=date(2024, 6, 1),
            start_time=time(9, 0),
            end_time=time(10, 0),
            sport='tennis',
            status=Booking.STATUS_CONFIRMED,
        )

    def _login(self, user):
        client = Client()
        session = client.session
        session['user_id'] = str(user.id)
        session.save()
        return client

    def _post(self, client, **overrides):
        payload = {'booking_id': str(self.booking.id), 'rating': 4, 'comment': 'Great surface and lights'}
        payload.update(overrides)
        return client.post(reverse('Booking:reviews'), data=json.dumps(payload), content_type='application/json')

    def test_review_own_booking(self):
        response = self._post(self._login(self.user))
        self.assertEqual(response.status_code, 201)
        review = Review.objects.get(booking=self.booking)
        self.assertEqual(review.court, self.court)
        self.assertEqual(review.reviewer, self.user)
        self.assertEqual(review.rating, 4)

    def test_duplicate_review_conflicts(self):
        client = self._login(self.user)
        self.assertEqual(self._post(client).status_code, 201)
        response = self._post(client, rating=1)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(Review.objects.count(), 1)

    def test_review_other_users_booking_forbidden(self):
        response = self._post(self._login(self.other_user))
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Review.objects.exists())

    def test_review_validation(self):
        client = self._login(self.user)
        cases = [
            ('rating_too_high', {'rating': 6}, 400),
            ('rating_zero', {'rating': 0}, 400),
            ('short_comment', {'comment': 'meh'}, 400),
            ('bad_booking_id', {'booking_id': 'nope'}, 400),
            ('unknown_booking', {'booking_id': '00000000-0000-0000-0000-000000000000'}, 400),
        ]
        for name, overrides, status in cases:
            with self.subTest(name=name):
                self.assertEqual(self._post(client, **overrides).status_code, status)
        self.assertEqual(self._post(Client()).status_code, 401)

    def test_list_reviews_for_court(self):
        Review.objects.create(court=self.court, booking=self.booking, reviewer=self.user, rating=4)
        second = Booking.objects.create(
            court=self.court,
            booked_by=self.other_user,
            booking_date=date(2024, 6, 2),
            start_time=time(9, 0),
            end_time=time(10, 0),
            sport='tennis',
        )
        Review.objects.create(court=self.court, booking=second, reviewer=self.other_user, rating=5)

        response = Client().get(reverse('Booking:reviews'), {'court_id': self.court.id})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body['reviews']), 2)
        self.assertEqual(body['average_rating'], 4.5)

        self.assertEqual(Client().get(reverse('Booking:reviews')).status_code, 400)
        self.assertEqual(Client().get(reverse('Booking:reviews'), {'court_id': 'abc'}).status_code, 400)
