import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI

from order_service import config
from order_service.catalog import DEFAULT_POLICY, ProductClient, build_http_client
from order_service.retry import RetryPolicy
from order_service.routers.orders import router as orders_router
from order_service.service import OrderService
from order_service.store import InMemoryOrderStore, OrderStore, PostgresOrderStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Order Service")

app.include_router(orders_router)


def build_store() -> OrderStore:
    if not config.DATABASE_URL:
        logger.warning("DATABASE_URL not set, orders are kept in memory")
        return InMemoryOrderStore()

    store = PostgresOrderStore(config.DATABASE_URL)
    store.init_schema()
    return store


def build_retry_policy(
    max_retries: int = config.CATALOG_MAX_RETRIES,
    initial_backoff_ms: int = config.CATALOG_INITIAL_BACKOFF_MS,
    max_backoff_ms: Optional[int] = config.CATALOG_MAX_BACKOFF_MS,
) -> RetryPolicy:
    return RetryPolicy(
        max_retries=max_retries,
        initial_backoff=initial_backoff_ms / 1000,
        max_backoff=max_backoff_ms / 1000 if max_backoff_ms is not None else None,
        retry_on=DEFAULT_POLICY.retry_on,
    )


@app.on_event("startup")
def startup():
    http = build_http_client(config.CATALOG_SERVICE_URI)
    product_client = ProductClient(
        http, timeout=config.CATALOG_TIMEOUT_SECONDS, policy=build_retry_policy()
    )

    app.state.http = http
    app.state.order_service = OrderService(build_store(), product_client)
    logger.info(f"Order service started, catalog at {config.CATALOG_SERVICE_URI}")


@app.on_event("shutdown")
async def shutdown():
    await app.state.http.aclose()


@app.get("/health")
def health():
    return {"ok": True}


def main():
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
