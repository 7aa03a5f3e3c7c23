import json
from unittest.mock import patch

from django.db import DatabaseError
from django.test import Client, TestCase
from django.urls import reverse

from Auth_Profile.models import User
from .checks import CAN_CREATE_TEAM_ON_QUERY_FAILURE, can_create_team, get_max_players_for_sport
from .models import Team, TeamMember


def make_user(email):
    return User.objects.create(
        nama=email.split('@')[0].title(),
        email=email,
        nomor_handphone='08123456789',
        password='hashed',
    )


class CanCreateTeamTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user('captain@example.com')

    def test_user_without_team_can_create(self):
        self.assertTrue(can_create_team(self.user.id))

    def test_owner_cannot_create_another(self):
        Team.objects.create(name='Smashers', sport='tennis', max_players=4, owner=self.user)
        self.assertFalse(can_create_team(self.user.id))

    def test_multiple_owned_teams_still_deny(self):
        Team.objects.create(name='Smashers', sport='tennis', max_players=4, owner=self.user)
        Team.objects.create(name='Dunkers', sport='basketball', max_players=12, owner=self.user)
        self.assertFalse(can_create_team(self.user.id))

    def test_membership_without_ownership_does_not_count(self):
        other = make_user('other@example.com')
        team = Team.objects.create(name='Smashers', sport='tennis', max_players=4, owner=other)
        TeamMember.objects.create(team=team, player=self.user, status=TeamMember.STATUS_APPROVED)
        self.assertTrue(can_create_team(self.user.id))

    def test_query_failure_denies(self):
        self.assertFalse(CAN_CREATE_TEAM_ON_QUERY_FAILURE)
        with patch.object(Team.objects, 'only', side_effect=DatabaseError('connection lost')):
            with self.assertLogs('Team.checks', level='ERROR') as logs:
                result = can_create_team(self.user.id)
        self.assertIs(result, False)
        self.assertIn('Error checking team ownership', logs.output[0])

    def test_invalid_user_id_denies(self):
        with self.assertLogs('Team.checks', level='ERROR'):
            self.assertFalse(can_create_team('not-a-uuid'))


class MaxPlayersTests(TestCase):
    def test_known_and_unknown_sports(self):
        cases = [
            ('basketball', 12),
            ('Football', 18),
            ('tennis', 4),
            ('padel', 4),
            ('curling', 10),
            (None, 10),
        ]
        for sport, expected in cases:
            with self.subTest(sport=sport):
                self.assertEqual(get_max_players_for_sport(sport), expected)


class TeamApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user('captain@example.com')
        cls.other_user = make_user('player@example.com')

    def setUp(self):
        self.client = self._login(self.user)

    def _login(self, user):
        client = Client()
        session = client.session
        session['user_id'] = str(user.id)
        session.save()
        return client

    def _create(self, client, **overrides):
        payload = {
            'name': 'Smashers',
            'sport': 'tennis',
            'description': 'Weekend doubles',
            'max_players': 4,
            'looking_for_players': True,
            'players_needed': 2,
        }
        payload.update(overrides)
        return client.post(reverse('Team:teams'), data=json.dumps(payload), content_type='application/json')

    def test_login_required(self):
        self.assertEqual(Client().post(reverse('Team:teams'), content_type='application/json').status_code, 401)
        self.assertEqual(Client().get(reverse('Team:team_eligibility')).status_code, 401)

    def test_create_team_adds_owner_membership(self):
        response = self._create(self.client)
        self.assertEqual(response.status_code, 201)
        team = Team.objects.get(name='Smashers')
        self.assertEqual(team.owner, self.user)
        member = TeamMember.objects.get(team=team, player=self.user)
        self.assertEqual(member.role, TeamMember.ROLE_OWNER)
        self.assertEqual(member.status, TeamMember.STATUS_APPROVED)

    def test_second_team_is_forbidden(self):
        self.assertEqual(self._create(self.client).status_code, 201)
        response = self._create(self.client, name='Second Team')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error'], 'You can only own one team at a time')
        self.assertEqual(Team.objects.filter(owner=self.user).count(), 1)

    def test_create_denied_when_ownership_check_fails(self):
        with patch.object(Team.objects, 'only', side_effect=DatabaseError('boom')):
            with self.assertLogs('Team.checks', level='ERROR'):
                response = self._create(self.client)
        self.assertEqual(response.status_code, 403)
        self.assertFalse(Team.objects.exists())

    def test_max_players_limit_per_sport(self):
        response = self._create(self.client, max_players=6)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Maximum 4 players allowed for tennis')

    def test_invalid_team_payload(self):
        cases = [
            ('short_name', {'name': 'ab'}),
            ('no_sport', {'sport': ''}),
            ('zero_players', {'max_players': 0}),
        ]
        for name, overrides in cases:
            with self.subTest(name=name):
                self.assertEqual(self._create(self.client, **overrides).status_code, 400)

    def test_list_filters(self):
        self._create(self.client)
        self._create(self._login(self.other_user), name='Dunkers', sport='basketball', max_players=12, looking_for_players=False)

        response = Client().get(reverse('Team:teams'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['teams']), 2)

        response = Client().get(reverse('Team:teams'), {'sport': 'basketball'})
        self.assertEqual([t['name'] for t in response.json()['teams']], ['Dunkers'])

        response = Client().get(reverse('Team:teams'), {'looking_for_players': 'true'})
        self.assertEqual([t['name'] for t in response.json()['teams']], ['Smashers'])

    def test_eligibility_endpoint(self):
        response = self.client.get(reverse('Team:team_eligibility'))
        self.assertEqual(response.json(), {'can_create': True})
        self._create(self.client)
        response = self.client.get(reverse('Team:team_eligibility'))
        self.assertEqual(response.json(), {'can_create': False})

    def test_owner_updates_member_status(self):
        self._create(self.client)
        team = Team.objects.get(name='Smashers')
        TeamMember.objects.create(team=team, player=self.other_user)
        url = reverse('Team:update_member_status', args=[team.id, self.other_user.id])

        response = self._login(self.other_user).post(url, data=json.dumps({'status': 'approved'}), content_type='application/json')
        self.assertEqual(response.status_code, 403)

        response = self.client.post(url, data=json.dumps({'status': 'maybe'}), content_type='application/json')
        self.assertEqual(response.status_code, 400)

        response = self.client.post(url, data=json.dumps({'status': 'approved'}), content_type='application/json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(TeamMember.objects.get(team=team, player=self.other_user).status, TeamMember.STATUS_APPROVED)

    def test_update_status_unknown_member(self):
        self._create(self.client)
        team = Team.objects.get(name='Smashers')
        url = reverse('Team:update_member_status', args=[team.id, '00000000-0000-0000-0000-000000000000'])
        response = self.client.post(url, data=json.dumps({'status': 'rejected'}), content_type='application/json')
        self.assertEqual(response.status_code, 404)

    def test_owner_membership_cannot_be_rejected(self):
        self._create(self.client)
        team = Team.objects.get(name='Smashers')
        url = reverse('Team:update_member_status', args=[team.id, self.user.id])
        response = self.client.post(url, data=json.dumps({'status': 'rejected'}), content_type='application/json')
        self.assertEqual(response.status_code, 404)
        owner = TeamMember.objects.get(team=team, player=self.user)
        self.assertEqual(owner.status, TeamMember.STATUS_APPROVED)
