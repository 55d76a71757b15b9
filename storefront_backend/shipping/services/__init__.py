from .melhor_envio import MelhorEnvioClient
from .quote import build_parcels, quote_freight

__all__ = [
    "MelhorEnvioClient",
    "build_parcels",
    "quote_freight",
]
