from .pagarme import PagarmeClient, from_cents, to_cents

__all__ = [
    "PagarmeClient",
    "from_cents",
    "to_cents",
]
