from .routes import router
from .schemas import AnalyzeTxRequest, AnalyzeTxResponse, HealthResponse, NetworkInfo

__all__ = [
    "router",
    "AnalyzeTxRequest",
    "AnalyzeTxResponse",
    "HealthResponse",
    "NetworkInfo",
]
