from whatsapp_gateway.api.routers import auth, messages, sessions, webhooks

__all__ = ["auth", "sessions", "messages", "webhooks"]
