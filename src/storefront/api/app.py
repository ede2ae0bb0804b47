"""FastAPI application factory for the storefront."""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.domain import Domain

from storefront.api.errors import register_error_handlers
from storefront.api.routes import cart_router, discount_router, order_router, product_router
from storefront.utils.logging import add_context, clear_context


def create_app(domain: Domain) -> FastAPI:
    """Build the API around an initialized ``domain``."""
    app = FastAPI(
        title="Fruitstore API",
        description="Catalogue, cart, discounts and checkout",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the Protean domain context and tag log lines with a request id."""
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        add_context(request_id=request_id, method=request.method, path=request.url.path)
        try:
            with domain.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        return response

    register_error_handlers(app)

    app.include_router(product_router)
    app.include_router(discount_router)
    app.include_router(cart_router)
    app.include_router(order_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": domain.name})

    return app
