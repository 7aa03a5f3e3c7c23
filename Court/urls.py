# urls.py (di app Court)
from django.urls import path
from . import views

app_name = 'Court'

urlpatterns = [
    path('api/courts/', views.courts_collection, name='courts'),
    path('api/courts/<int:court_id>/', views.court_detail, name='court_detail'),
    path('api/courts/<int:court_id>/availability/', views.court_availability, name='court_availability'),
]
