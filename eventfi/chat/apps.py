from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class ChatConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "eventfi.chat"
    verbose_name = _("Event chat")

    def ready(self):
        import eventfi.chat.signals  # noqa: F401, PLC0415
