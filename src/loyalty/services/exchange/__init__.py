"""Points exchange service module."""

from loyalty.services.exchange.coordinator import ExchangeCoordinator, ExchangeResult
from loyalty.services.exchange.schemas import ExchangeRequest, ExchangeResponse

__all__ = [
    "ExchangeCoordinator",
    "ExchangeRequest",
    "ExchangeResponse",
    "ExchangeResult",
]
