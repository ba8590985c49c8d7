from token_pricer.api.routes.health import router as health_router
from token_pricer.api.routes.price import router as price_router
from token_pricer.api.routes.tokens import router as tokens_router

__all__ = ["health_router", "price_router", "tokens_router"]
