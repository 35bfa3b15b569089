"""
Catalog discovery on remote Dataspace Connectors.

Walks a connector's IDS self-description down to the resources it offers:
  1. Request the connector self-description
  2. Request the first advertised resource catalog
  3. Project every offered resource onto an ``OfferedResource``
"""

from __future__ import annotations

from typing import Any

from dsc_controller.connectors.dsc.client import DSCClient
from dsc_controller.connectors.dsc.errors import EmptyCatalogError
from dsc_controller.connectors.dsc.models import (
    CatalogDescription,
    ConnectorDescription,
    OfferedResource,
    OfferedResourceDescription,
    parse_document,
)
from dsc_controller.connectors.dsc.references import id_from_ref
from dsc_controller.core.logging import get_logger

logger = get_logger(__name__)


class CatalogDiscovery:
    """Enumerates the offers published by a remote connector."""

    def __init__(self, client: DSCClient) -> None:
        self._client = client

    def _recipient(self, endpoint_url: str) -> str:
        return f"{endpoint_url.rstrip('/')}{self._client.config.ids_path}"

    async def get_description(self, endpoint_url: str) -> dict[str, Any]:
        """Fetch the plain self-description of a remote connector."""
        return await self._client.send_self_description(self._recipient(endpoint_url))

    async def list_offers(self, endpoint_url: str) -> list[OfferedResource]:
        """
        List the offered resources of the first catalog a connector advertises.

        Args:
            endpoint_url: Base URL of the remote connector, e.g. ``https://provider:8080``.

        Returns:
            One ``OfferedResource`` per catalog entry, in catalog order.

        Raises:
            EmptyCatalogError: If the connector advertises no resource catalog.
            MalformedDescriptionError: If a description lacks required IDS fields.
        """
        recipient = self._recipient(endpoint_url)

        connector = parse_document(
            ConnectorDescription,
            await self._client.send_self_description(recipient),
            "Connector self-description",
        )
        if not connector.resource_catalog:
            raise EmptyCatalogError(endpoint_url)

        catalog_id = connector.resource_catalog[0].id
        catalog = parse_document(
            CatalogDescription,
            await self._client.send_self_description(recipient, catalog_id),
            "Resource catalog description",
        )

        offers = [_to_offered_resource(entry) for entry in catalog.offered_resource]

        logger.info(
            "dsc_catalog_discovered",
            endpoint_url=endpoint_url,
            catalog_id=catalog_id,
            offer_count=len(offers),
        )
        return offers

    async def get_offer_description(
        self, endpoint_url: str, contract_offer_id: str
    ) -> dict[str, Any]:
        """Fetch the full description of one contract offer."""
        base = endpoint_url.rstrip("/")
        return await self._client.send_self_description(
            self._recipient(base),
            f"{base}/api/contracts/{contract_offer_id}",
        )


def _to_offered_resource(entry: OfferedResourceDescription) -> OfferedResource:
    return OfferedResource(
        offer_id=id_from_ref(entry.id),
        contract_offer_id=id_from_ref(entry.contract_offer[0].id),
        asset_id=id_from_ref(entry.representation[0].instance[0].id),
        asset_name=entry.title[0].value,
    )
