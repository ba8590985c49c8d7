"""API dependencies"""

from fastapi import Request

from token_pricer.services.price_service import PriceService


def get_price_service(request: Request) -> PriceService:
    """Price service built once in the application lifespan."""
    return request.app.state.price_service
