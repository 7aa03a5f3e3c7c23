from django.apps import AppConfig


class AuthProfileConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'Auth_Profile'
