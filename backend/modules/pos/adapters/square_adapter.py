import logging
import uuid
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

import httpx

from core.config import get_settings
from ..interfaces.pos_client import ExternalPOSClient, POSClientError, to_cents

logger = logging.getLogger(__name__)

SQUARE_API_VERSION = "2024-07-17"
PRODUCTION_BASE_URL = "https://connect.squareup.com/v2"
SANDBOX_BASE_URL = "https://connect.squareupsandbox.com/v2"


class SquareAdapter(ExternalPOSClient):
    """Square REST API: catalog, inventory counts and order mirroring"""

    def __init__(
        self,
        access_token: str,
        location_id: str,
        environment: str = "sandbox",
        currency: str = "USD",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.location_id = location_id
        self.currency = currency
        self.timeout = timeout
        self.transport = transport
        self.base_url = (
            PRODUCTION_BASE_URL if environment == "production" else SANDBOX_BASE_URL
        )
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Square-Version": SQUARE_API_VERSION,
        }

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPError as e:
                raise POSClientError(f"Square API error on {method} {path}: {e}") from e

    async def list_catalog_items(self) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        cursor = None
        while True:
            params = {"types": "ITEM"}
            if cursor:
                params["cursor"] = cursor
            data = await self._request("GET", "/catalog/list", params=params)
            for obj in data.get("objects", []):
                if obj.get("type") == "ITEM" and not obj.get("is_deleted", False):
                    items.append(self.transform_item_from_pos(obj))
            cursor = data.get("cursor")
            if not cursor:
                return items

    def transform_item_from_pos(self, pos_item_data: Dict[str, Any]) -> Dict[str, Any]:
        """Transform a Square ITEM object to menu item fields"""
        item_data = pos_item_data.get("item_data", {})
        variations = item_data.get("variations", [])

        price = Decimal("0.00")
        if variations:
            variation_data = variations[0].get("item_variation_data", {})
            amount = variation_data.get("price_money", {}).get("amount", 0)
            price = (Decimal(amount) / 100).quantize(Decimal("0.01"))

        return {
            "external_id": pos_item_data.get("id"),
            "name": item_data.get("name", ""),
            "description": item_data.get("description"),
            "price": price,
            "category": item_data.get("category_name") or "Uncategorized",
            "is_available": not item_data.get("is_archived", False),
        }

    async def get_inventory_counts(self, external_ids: Sequence[str]) -> Dict[str, int]:
        if not external_ids:
            return {}
        counts: Dict[str, int] = {}
        cursor = None
        while True:
            body: Dict[str, Any] = {
                "catalog_object_ids": list(external_ids),
                "location_ids": [self.location_id],
            }
            if cursor:
                body["cursor"] = cursor
            data = await self._request("POST", "/inventory/counts/batch-retrieve", json=body)
            for count in data.get("counts", []):
                if count.get("state") != "IN_STOCK":
                    continue
                object_id = count.get("catalog_object_id")
                quantity = int(Decimal(count.get("quantity", "0")))
                counts[object_id] = counts.get(object_id, 0) + quantity
            cursor = data.get("cursor")
            if not cursor:
                return counts

    async def create_order(self, order: Dict[str, Any]) -> str:
        body = {
            "idempotency_key": f"order-{order['order_number']}",
            "order": {
                "location_id": self.location_id,
                "reference_id": order["order_number"],
                "line_items": [
                    {
                        "name": line["name"],
                        "quantity": str(line["quantity"]),
                        "base_price_money": {
                            "amount": to_cents(line["price"]),
                            "currency": self.currency,
                        },
                        "note": line.get("notes") or "",
                    }
                    for line in order["lines"]
                ],
            },
        }
        data = await self._request("POST", "/orders", json=body)
        external_ref = data.get("order", {}).get("id")
        if not external_ref:
            raise POSClientError("Square did not return an order id")
        return external_ref

    async def update_order_state(self, external_ref: str, state: str) -> None:
        current = await self._request("GET", f"/orders/{external_ref}")
        version = current.get("order", {}).get("version")
        body = {
            "idempotency_key": str(uuid.uuid4()),
            "order": {"location_id": self.location_id, "version": version, "state": state},
        }
        await self._request("PUT", f"/orders/{external_ref}", json=body)
        logger.info(f"Square order {external_ref} set to {state}")


@lru_cache()
def get_pos_client() -> Optional[ExternalPOSClient]:
    """The configured external POS, or None when no credentials are set."""
    settings = get_settings()
    if not settings.square_enabled:
        logger.info("Square credentials not configured, external POS disabled")
        return None
    return SquareAdapter(
        access_token=settings.square_access_token,
        location_id=settings.square_location_id,
        environment=settings.square_environment,
        currency=settings.payment_currency,
    )
