from storefront.api.app import create_app
from storefront.api.routes import cart_router, discount_router, order_router, product_router

__all__ = ["cart_router", "create_app", "discount_router", "order_router", "product_router"]
