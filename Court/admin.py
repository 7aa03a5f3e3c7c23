from django.contrib import admin
from .models import Court, CourtAvailability


class CourtAvailabilityInline(admin.TabularInline):
    model = CourtAvailability
    extra = 0


@admin.register(Court)
class CourtAdmin(admin.ModelAdmin):
    list_display = ('name', 'city', 'price_per_hour', 'status', 'is_active', 'owner', 'created_at')
    list_filter = ('status', 'is_active', 'city')
    search_fields = ('name', 'city', 'address', 'owner__email')
    readonly_fields = ('created_at', 'updated_at')
    inlines = [CourtAvailabilityInline]
    actions = ['approve_courts']

    @admin.action(description='Approve selected courts')
    def approve_courts(self, request, queryset):
        queryset.update(status=Court.STATUS_APPROVED, is_active=True)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('owner')
