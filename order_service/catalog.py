"""
Catalog Service Client
Looks up a product by ID; every failure collapses to "no product".
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from order_service.models import Product
from order_service.retry import RetryExhausted, RetryPolicy, retrying

logger = logging.getLogger(__name__)

PRODUCTS_ROOT_API = "/products/"

DEFAULT_TIMEOUT_SECONDS = 3.0
DEFAULT_POLICY = RetryPolicy(
    max_retries=3,
    initial_backoff=0.1,
    # ValueError covers bad JSON and pydantic ValidationError
    retry_on=(httpx.HTTPError, ValueError),
)


def product_path(product_id: str) -> str:
    # id is opaque: encode it as a single path segment
    return PRODUCTS_ROOT_API + quote(product_id, safe="")


def build_http_client(base_uri: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_uri)


class ProductClient:
    """
    Catalog lookup with:
    - per-attempt timeout (timeout -> absent, no retry)
    - 404 -> absent, no retry
    - connection errors, other statuses and bad bodies retried with backoff
    - exhausted retries -> absent
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        policy: RetryPolicy = DEFAULT_POLICY,
        sleep=asyncio.sleep,
    ):
        self.http = http
        self.timeout = timeout
        self.policy = policy
        self._fetch_with_retry = retrying(policy, sleep=sleep)(self._fetch)

    async def get_product(self, product_id: str) -> Optional[Product]:
        try:
            return await self._fetch_with_retry(product_id)
        except RetryExhausted as e:
            logger.warning(
                f"Catalog lookup for product={product_id} exhausted "
                f"after {e.attempts} attempts: {e.last_error}"
            )
        except Exception as e:
            logger.warning(f"Catalog lookup for product={product_id} failed: {e}")
        return None

    async def _fetch(self, product_id: str) -> Optional[Product]:
        try:
            r = await asyncio.wait_for(
                self.http.get(product_path(product_id), timeout=self.timeout),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(
                f"Catalog lookup for product={product_id} timed out after {self.timeout}s"
            )
            return None

        if r.status_code == 404:
            logger.info(f"Product {product_id} not found in catalog")
            return None

        r.raise_for_status()
        return Product.model_validate(r.json())
