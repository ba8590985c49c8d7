# Services package
from token_pricer.services.cache import TokenCache
from token_pricer.services.catalog import TokenCatalog
from token_pricer.services.metadata import TokenMetadataResolver
from token_pricer.services.price_service import PriceService
from token_pricer.services.pricing import PriceResolutionEngine

__all__ = [
    "TokenCache",
    "TokenCatalog",
    "TokenMetadataResolver",
    "PriceResolutionEngine",
    "PriceService",
]
