from .webhook import PagarmeWebhookView

__all__ = [
    "PagarmeWebhookView",
]
