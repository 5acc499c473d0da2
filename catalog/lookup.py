"""Product lookup capability.

Cart operations read product data through a ``ProductLookup`` so the catalog
may live in this process (ORM) or behind the catalog service's bulk endpoint.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Protocol

import requests
from django.conf import settings
from requests import ConnectionError as RequestsConnectionError
from requests import HTTPError, Timeout
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from . import selectors

logger = logging.getLogger("smartcart.catalog")


@dataclass(frozen=True)
class ProductSnapshot:
    """Immutable view of the product fields the cart and checkout need."""

    id: int
    title: str
    price: Decimal
    stock: int
    image_url: str = ""
    is_active: bool = True

    @classmethod
    def from_model(cls, product) -> "ProductSnapshot":
        return cls(
            id=int(product.id),
            title=product.title,
            price=product.price,
            stock=int(product.stock),
            image_url=product.image_url or "",
            is_active=bool(product.is_active),
        )

    @classmethod
    def from_payload(cls, data: dict) -> "ProductSnapshot":
        return cls(
            id=int(data["id"]),
            title=data.get("title") or "",
            price=Decimal(str(data["price"])),
            stock=int(data.get("stock") or 0),
            image_url=data.get("image_url") or "",
            is_active=bool(data.get("is_active", True)),
        )


class ProductLookup(Protocol):
    def fetch(self, product_id: int) -> Optional[ProductSnapshot]: ...

    def fetch_many(self, product_ids: Iterable[int]) -> list[ProductSnapshot]: ...


class LocalProductLookup:
    """Reads active products straight from the catalog tables."""

    def fetch(self, product_id: int) -> Optional[ProductSnapshot]:
        product = selectors.get_product(product_id)
        return ProductSnapshot.from_model(product) if product else None

    def fetch_many(self, product_ids: Iterable[int]) -> list[ProductSnapshot]:
        ids = list(product_ids)
        if not ids:
            return []
        return [ProductSnapshot.from_model(p) for p in selectors.products_by_ids(ids)]


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (RequestsConnectionError, Timeout)):
        return True
    if isinstance(exc, HTTPError) and exc.response is not None:
        return exc.response.status_code >= 500
    return False


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception(_is_transient),
    )


class HttpProductLookup:
    """Calls a remote catalog service's bulk endpoint.

    Connection errors, timeouts and 5xx responses are retried with exponential
    backoff and re-raised once attempts run out. 4xx responses fail at once.
    """

    def __init__(self, base_url: str, timeout: float = 2, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, product_id: int) -> Optional[ProductSnapshot]:
        found = self.fetch_many([product_id])
        return found[0] if found else None

    def fetch_many(self, product_ids: Iterable[int]) -> list[ProductSnapshot]:
        ids = [int(pid) for pid in product_ids]
        if not ids:
            return []
        return [ProductSnapshot.from_payload(item) for item in self._post_bulk(ids)]

    @http_retry()
    def _post_bulk(self, ids: list[int]) -> list[dict]:
        url = f"{self.base_url}/products/bulk/"
        logger.info("catalog.bulk_lookup", extra={"event": "catalog.bulk_lookup", "url": url, "count": len(ids)})
        resp = self.session.post(url, json={"ids": ids}, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()


def get_product_lookup() -> ProductLookup:
    """Return the lookup configured for this deployment.

    ``PRODUCT_SERVICE_URL`` set: remote catalog over HTTP. Unset: local ORM.
    """

    base_url = getattr(settings, "PRODUCT_SERVICE_URL", "")
    if base_url:
        return HttpProductLookup(base_url, timeout=getattr(settings, "PRODUCT_SERVICE_TIMEOUT", 2))
    return LocalProductLookup()
