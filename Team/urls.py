from django.urls import path
from . import views

app_name = 'Team'

urlpatterns = [
    path('api/teams/', views.teams_collection, name='teams'),
    path('api/teams/eligibility/', views.team_eligibility, name='team_eligibility'),
    path(
        'api/teams/<int:team_id>/members/<uuid:member_id>/status/',
        views.update_member_status,
        name='update_member_status',
    ),
]
