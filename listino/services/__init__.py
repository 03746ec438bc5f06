from .price_update import PriceUpdateResult, PriceUpdateService, price_update_service

__all__ = ["PriceUpdateResult", "PriceUpdateService", "price_update_service"]
