import logging

from django.db import transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from Auth_Profile.utils import require_user
from root_project.api import error_response, form_error_response, load_json_body

from .checks import can_create_team, get_max_players_for_sport
from .forms import TeamForm
from .models import Team, TeamMember

logger = logging.getLogger(__name__)


def serialize_member(member):
    return {
        'id': member.id,
        'player_id': str(member.player_id),
        'player_name': member.player.nama,
        'role': member.role,
        'status': member.status,
    }


def serialize_team(team):
    return {
        'id': team.id,
        'name': team.name,
        'sport': team.sport,
        'description': team.description,
        'logo_url': team.logo_url,
        'max_players': team.max_players,
        'looking_for_players': team.looking_for_players,
        'players_needed': team.players_needed,
        'owner_id': str(team.owner_id),
        'owner_name': team.owner.nama,
        'members': [serialize_member(member) for member in team.members.all()],
        'created_at': team.created_at.isoformat(),
    }


@csrf_exempt
@require_http_methods(["GET", "POST"])
def teams_collection(request):
    """
    GET  /team/api/teams/?sport=...&looking_for_players=true
    POST /team/api/teams/
    """
    if request.method == 'POST':
        return _create_team(request)

    teams = Team.objects.select_related('owner').prefetch_related('members__player')

    sport = request.GET.get('sport')
    if sport:
        teams = teams.filter(sport__iexact=sport)

    if request.GET.get('looking_for_players') == 'true':
        teams = teams.filter(looking_for_players=True)

    return JsonResponse({'teams': [serialize_team(team) for team in teams.order_by('-created_at')]})


def _create_team(request):
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    if not can_create_team(current_user.id):
        return error_response('You can only own one team at a time', status=403)

    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    form = TeamForm(data=data)
    if not form.is_valid():
        return form_error_response(form)

    sport = form.cleaned_data['sport']
    max_allowed = get_max_players_for_sport(sport)
    if form.cleaned_data['max_players'] > max_allowed:
        return error_response(f'Maximum {max_allowed} players allowed for {sport}')

    with transaction.atomic():
        team = form.save(commit=False)
        team.owner = current_user
        team.save()
        TeamMember.objects.create(
            team=team,
            player=current_user,
            role=TeamMember.ROLE_OWNER,
            status=TeamMember.STATUS_APPROVED,
        )
    logger.info("Team %s created by %s", team.id, current_user.id)

    return JsonResponse({'success': True, 'team': serialize_team(team)}, status=201)


@require_http_methods(["GET"])
def team_eligibility(request):
    """GET /team/api/teams/eligibility/ - whether the current user may create a team."""
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error
    return JsonResponse({'can_create': can_create_team(current_user.id)})


@csrf_exempt
@require_http_methods(["POST"])
def update_member_status(request, team_id, member_id):
    """
    Approve or reject a player's membership. Only the team owner may do this.
    POST /team/api/teams/<team_id>/members/<player_id>/status/  body: {"status": "approved"}
    """
    current_user, error = require_user(request, json_mode=True)
    if error:
        return error

    data, bad_request = load_json_body(request)
    if bad_request:
        return bad_request

    status = data.get('status')
    if status not in (TeamMember.STATUS_APPROVED, TeamMember.STATUS_REJECTED):
        return error_response('status must be "approved" or "rejected"')

    is_owner = TeamMember.objects.filter(
        team_id=team_id,
        player=current_user,
        role=TeamMember.ROLE_OWNER,
    ).exists()
    if not is_owner:
        return error_response('Only the team owner can manage members', status=403)

    # The owner membership is fixed
    updated = TeamMember.objects.filter(
        team_id=team_id,
        player_id=member_id,
    ).exclude(role=TeamMember.ROLE_OWNER).update(status=status)
    if not updated:
        return error_response('Member not found', status=404)

    return JsonResponse({'success': True})
