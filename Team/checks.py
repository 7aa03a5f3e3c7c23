"""Team eligibility rules."""
import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from .models import Team

logger = logging.getLogger(__name__)

# Fail-closed: a failed ownership lookup denies team creation.
CAN_CREATE_TEAM_ON_QUERY_FAILURE = False

MAX_PLAYERS_PER_SPORT = {
    'basketball': 12,
    'football': 18,
    'tennis': 4,
    'volleyball': 12,
    'badminton': 4,
    'padel': 4,
}
DEFAULT_MAX_PLAYERS = 10


def can_create_team(user_id):
    """
    Return True when ``user_id`` does not own a team yet.

    A missing row is the normal "eligible" answer. Any other lookup failure is
    logged and answered with ``CAN_CREATE_TEAM_ON_QUERY_FAILURE``.
    """
    try:
        Team.objects.only('id').get(owner_id=user_id)
    except Team.DoesNotExist:
        return True
    except Team.MultipleObjectsReturned:
        return False
    except (DatabaseError, ValidationError, ValueError, TypeError):
        logger.exception("Error checking team ownership for user %s", user_id)
        return CAN_CREATE_TEAM_ON_QUERY_FAILURE
    return False


def get_max_players_for_sport(sport):
    return MAX_PLAYERS_PER_SPORT.get((sport or '').strip().lower(), DEFAULT_MAX_PLAYERS)
