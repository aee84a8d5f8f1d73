from django.apps import AppConfig, apps


class WebsocketChatConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'websocket_chat'

    def ready(self) -> None:
        """
        Create the process-wide chat hub.

        The hub owns the presence registry, so it lives exactly as long as the
        server process; consumers reach it through ``get_hub``.
        """
        from .hub import ChatHub
        self.hub = ChatHub()


def get_hub():
    return apps.get_app_config('websocket_chat').hub
