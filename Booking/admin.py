from django.contrib import admin
from .models import Booking, MatchParticipant, Review

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('court', 'booking_date', 'start_time', 'end_time', 'booked_by', 'status', 'payment_status')
    list_filter = ('status', 'payment_status', 'booking_date')
    search_fields = ('court__name', 'booked_by__email', 'match_title')
    readonly_fields = ('created_at', 'updated_at')
    date_hierarchy = 'booking_date'

    fieldsets = (
        ('Reservation', {
            'fields': ('court', 'booking_date', 'start_time', 'end_time', 'sport')
        }),
        ('Players', {
            'fields': ('booked_by', 'team')
        }),
        ('Payment & Status', {
            'fields': ('total_amount', 'status', 'payment_status')
        }),
        ('Open Match', {
            'fields': ('is_open_match', 'match_title', 'max_participants'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('court', 'booked_by', 'team')


@admin.register(MatchParticipant)
class MatchParticipantAdmin(admin.ModelAdmin):
    list_display = ('booking', 'user', 'team', 'status', 'joined_at')
    list_filter = ('status',)
    search_fields = ('user__email', 'booking__match_title')


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('court', 'reviewer', 'rating', 'created_at')
    list_filter = ('rating',)
    search_fields = ('court__name', 'reviewer__email', 'comment')
    readonly_fields = ('created_at',)
