from django.contrib import admin
from .models import Team, TeamMember


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'sport', 'owner', 'max_players', 'looking_for_players', 'created_at')
    list_filter = ('sport', 'looking_for_players')
    search_fields = ('name', 'owner__email')
    inlines = [TeamMemberInline]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('owner')
