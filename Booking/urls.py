from django.urls import path
from . import views

app_name = 'Booking'

urlpatterns = [
    path('api/bookings/', views.bookings_collection, name='bookings'),
    path('api/bookings/<uuid:booking_id>/', views.booking_detail, name='booking_detail'),
    path('api/matches/open/', views.open_matches, name='open_matches'),
    path('api/matches/<uuid:booking_id>/join/', views.join_match, name='join_match'),
    path('api/reviews/', views.reviews_collection, name='reviews'),
]
