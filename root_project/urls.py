from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('Auth_Profile.urls')),
    path('court/', include('Court.urls')),
    path('booking/', include('Booking.urls')),
    path('team/', include('Team.urls')),
]
