"""Order store HTTP API built with FastAPI.

This module exposes the store to the surrounding checkout service: save an
order, fetch one by id, and list a customer's orders. Validation is
performed with Pydantic models, while persistence is delegated to
``repository.OrderStore``. On startup the app waits for the database and
bootstraps the schema; a bootstrap failure aborts startup.
"""

from fastapi import FastAPI, HTTPException, Request
from sqlalchemy.engine import Engine

from . import settings
from .db import make_engine
from .errors import ErrorKind, StoreError
from .logs import get_logger
from .middleware import add_request_id
from .repository import OrderStore
from .schema import init_db, wait_for_db
from .schemas import CreateOrderDTO, OrderReadDTO

logger = get_logger("orderstore")

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.WRITE: 409,
    ErrorKind.CONNECTION: 503,
    ErrorKind.CANCELLED: 504,
}


def _http_error(exc: StoreError) -> HTTPException:
    status = STATUS_BY_KIND.get(exc.kind, 500)
    if status >= 500:
        logger.error("store failure", extra={"kind": exc.kind.value, "stage": exc.stage})
    return HTTPException(status_code=status, detail=exc.kind.value)


def _store(request: Request) -> OrderStore:
    return request.app.state.store


def create_app(engine: Engine | None = None) -> FastAPI:
    """Build the API.

    Args:
        engine: Engine to use; when omitted one is created from settings at
            startup.

    Returns:
        FastAPI: The configured application.
    """
    app = FastAPI(title="Order Store")
    app.middleware("http")(add_request_id)

    @app.on_event("startup")
    def _startup_db():
        eng = engine or make_engine()
        wait_for_db(eng)
        init_db(eng)
        app.state.engine = eng
        app.state.store = OrderStore(eng)

    @app.on_event("shutdown")
    def _shutdown_db():
        eng = getattr(app.state, "engine", None)
        if engine is None and eng is not None:
            eng.dispose()

    @app.get("/health")
    def health():
        """Liveness/health check endpoint.

        Returns:
            dict: A small JSON payload indicating service health.
        """
        return {"ok": True}

    @app.post("/orders", status_code=201)
    def create_order(req: CreateOrderDTO, request: Request):
        """Persist a completed checkout.

        Returns:
            dict: ``{"order_id": ...}`` with HTTP 201.

        Raises:
            HTTPException: 409 when the order is rejected (e.g. duplicate
                id), 503 when the database is unreachable, 504 on timeout,
                500 otherwise.
        """
        try:
            _store(request).save_order(
                order_id=req.order_id,
                user_id=req.user_id,
                email=req.email,
                address=req.address.to_domain(),
                credit_card=req.credit_card.to_domain(),
                total=req.total.to_domain(),
                items=req.cart_items(),
                tracking_id=req.shipping_tracking_id,
            )
        except StoreError as exc:
            raise _http_error(exc) from exc
        return {"order_id": req.order_id}

    @app.get("/orders/{order_id}", response_model=OrderReadDTO, response_model_exclude_none=True)
    def get_order(order_id: str, request: Request):
        """Fetch an order with its items.

        Raises:
            HTTPException: 404 with ``NOT_FOUND`` when the order does not
                exist.
        """
        store = _store(request)
        try:
            order = store.get_order(order_id)
            items = store.get_order_items(order_id)
        except StoreError as exc:
            raise _http_error(exc) from exc
        return OrderReadDTO.from_domain(order, items)

    @app.get("/users/{user_id}/orders")
    def get_user_orders(user_id: str, request: Request):
        """List a customer's orders, most recent first.

        Returns:
            dict: ``{"results": [...]}``; empty when the customer has none.
        """
        try:
            orders = _store(request).get_user_orders(user_id)
        except StoreError as exc:
            raise _http_error(exc) from exc
        return {
            "results": [OrderReadDTO.from_domain(o).model_dump(mode="json", exclude_none=True) for o in orders]
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the environment settings."""
    import uvicorn

    uvicorn.run(
        "orderstore.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL,
    )
