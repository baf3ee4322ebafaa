from django.apps import AppConfig


class TrilhasConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "trilhas"
    verbose_name = "Trilhas e conteudos"
