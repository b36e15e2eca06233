from django.apps import AppConfig


class ReplicaConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'replica'
    verbose_name = 'Replica bootstrap'
