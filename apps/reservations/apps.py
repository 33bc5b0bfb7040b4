from django.apps import AppConfig


class ReservationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.reservations"
    label = "reservations"
    verbose_name = "Reservations"

    def ready(self):
        from shared.application.message_bus import message_bus

        from .application.command_handlers import register_handlers as register_command_handlers
        from .handlers import register_handlers as register_event_handlers

        register_command_handlers(message_bus)
        register_event_handlers(message_bus)
