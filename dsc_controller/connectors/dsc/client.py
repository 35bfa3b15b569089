"""
Dataspace Connector REST API client.

Mirrors the EDC management client pattern: persistent httpx.AsyncClient,
dataclass config object, structured logging, and explicit ``close()``
lifecycle. Covers the IDS messaging endpoints used for negotiation and the
resource CRUD endpoints used for publication.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from dsc_controller.connectors.dsc.errors import (
    MalformedDescriptionError,
    NegotiationRejectedError,
)
from dsc_controller.connectors.dsc.models import PermissionRule
from dsc_controller.connectors.dsc.references import id_from_ref
from dsc_controller.core.config import Settings, get_settings
from dsc_controller.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DSCConfig:
    """Configuration for connecting to the local Dataspace Connector."""

    base_url: str  # e.g. https://consumer:8080
    username: str = ""
    password: str = ""
    ids_path: str = "/api/ids/data"  # IDS messaging path on remote connectors
    timeout: float = 30.0
    verify_tls: bool = True

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DSCConfig:
        settings = settings or get_settings()
        return cls(
            base_url=settings.connector_url,
            username=settings.username,
            password=settings.password,
            ids_path=settings.ids_path,
            timeout=settings.timeout_seconds,
            verify_tls=settings.verify_tls,
        )


class DSCClient:
    """
    Client for the Dataspace Connector REST API.

    Uses HTTP basic authentication against the ``/api`` path prefix.
    """

    def __init__(
        self,
        config: DSCConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    @property
    def config(self) -> DSCConfig:
        return self._config

    def _validate_config(self) -> None:
        base = (self._config.base_url or "").strip()
        if not base:
            raise ValueError("DSC base URL is required")
        self._config.base_url = base.rstrip("/")

    async def _get_client(self) -> httpx.AsyncClient:
        """Return (or lazily create) the authenticated HTTP client."""
        if self._http_client is None:
            self._validate_config()
            auth = None
            if self._config.username:
                auth = httpx.BasicAuth(self._config.username, self._config.password)

            self._http_client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers={"Accept": "application/json"},
                auth=auth,
                timeout=self._config.timeout,
                verify=self._config.verify_tls,
                transport=self._transport,
            )
        return self._http_client

    # ------------------------------------------------------------------
    # IDS messaging
    # ------------------------------------------------------------------

    async def send_self_description(
        self, recipient: str, element_id: str | None = None
    ) -> dict[str, Any]:
        """Request a self-description (or one element of it) from a remote connector."""
        client = await self._get_client()

        params = {"recipient": recipient}
        if element_id:
            params["elementId"] = element_id

        logger.debug("dsc_requesting_description", recipient=recipient, element_id=element_id)

        response = await client.post("/api/ids/description", params=params)
        response.raise_for_status()

        return _json_object(response, "Self-description")

    async def send_contract_request(
        self,
        recipient: str,
        offer_urls: Sequence[str],
        target_urls: Sequence[str],
        auto_sign: bool,
        rules: Sequence[PermissionRule],
    ) -> dict[str, Any]:
        """
        Send a contract request message to a remote connector.

        Every rule must already be bound to its target artifact.

        Raises:
            NegotiationRejectedError: If the connector answers with a non-2xx status.
        """
        client = await self._get_client()

        body = [rule.to_payload() for rule in rules]

        logger.info(
            "dsc_sending_contract_request",
            recipient=recipient,
            offers=list(offer_urls),
            artifacts=list(target_urls),
        )

        response = await client.post(
            "/api/ids/contract",
            params={
                "recipient": recipient,
                "resourceIds": list(offer_urls),
                "artifactIds": list(target_urls),
                "download": auto_sign,
            },
            json=body,
        )
        if not response.is_success:
            payload = _error_payload(response)
            logger.warning(
                "dsc_contract_request_rejected",
                recipient=recipient,
                status_code=response.status_code,
            )
            raise NegotiationRejectedError(response.status_code, payload)

        return _json_object(response, "Contract agreement response")

    # ------------------------------------------------------------------
    # Agreements & data
    # ------------------------------------------------------------------

    async def get_agreement_artifacts(self, agreement_id: str) -> dict[str, Any]:
        """List the artifacts an agreement grants access to."""
        client = await self._get_client()

        response = await client.get(f"/api/agreements/{agreement_id}/artifacts")
        response.raise_for_status()
        return _json_object(response, "Agreement artifact listing")

    async def get_data(
        self,
        artifact_id: str,
        download: bool | None = None,
        agreement_uri: str | None = None,
        route_ids: Sequence[str] | None = None,
    ) -> bytes:
        """Query an artifact's data, optionally forwarding it to sink routes."""
        client = await self._get_client()

        params: dict[str, Any] = {}
        if download is not None:
            params["download"] = download
        if agreement_uri:
            params["agreementUri"] = agreement_uri
        if route_ids:
            params["routeIds"] = list(route_ids)

        logger.info(
            "dsc_querying_artifact_data",
            artifact_id=artifact_id,
            download=download,
            route_ids=list(route_ids or []),
        )

        response = await client.get(f"/api/artifacts/{artifact_id}/data", params=params)
        response.raise_for_status()
        return response.content

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def create_artifact(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("artifacts", payload)

    async def create_endpoint(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("endpoints", payload)

    async def create_data_source(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("datasources", payload)

    async def create_route(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("routes", payload)

    async def create_catalog(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("catalogs", payload)

    async def create_offer(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("offers", payload)

    async def create_representation(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("representations", payload)

    async def create_contract(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("contracts", payload)

    async def create_rule(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._create("rules", payload)

    async def _create(self, collection: str, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()

        # Unset optional fields are left out of the body
        body = {key: value for key, value in payload.items() if value is not None}

        response = await client.post(f"/api/{collection}", json=body)
        response.raise_for_status()

        result = _json_object(response, f"Created {collection} resource")
        logger.info(
            "dsc_resource_created",
            collection=collection,
            href=result.get("_links", {}).get("self", {}).get("href"),
        )
        return result

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    async def link_data_source(self, endpoint_ref: str, data_source_ref: str) -> None:
        client = await self._get_client()
        response = await client.put(
            f"/api/endpoints/{id_from_ref(endpoint_ref)}/datasource/{id_from_ref(data_source_ref)}"
        )
        response.raise_for_status()

    async def set_route_start(self, route_ref: str, endpoint_ref: str) -> None:
        await self._set_route_endpoint(route_ref, "start", endpoint_ref)

    async def set_route_end(self, route_ref: str, endpoint_ref: str) -> None:
        await self._set_route_endpoint(route_ref, "end", endpoint_ref)

    async def _set_route_endpoint(self, route_ref: str, position: str, endpoint_ref: str) -> None:
        client = await self._get_client()
        response = await client.put(
            f"/api/routes/{id_from_ref(route_ref)}/endpoint/{position}",
            json=endpoint_ref,
        )
        response.raise_for_status()

    async def add_camel_routes(self, routes_xml: str) -> None:
        """Upload an Apache Camel XML route definition."""
        client = await self._get_client()
        response = await client.post(
            "/api/camel/routes",
            files={"file": ("routes.xml", routes_xml.encode("utf-8"), "application/xml")},
        )
        response.raise_for_status()

    async def add_offers_to_catalog(self, catalog_ref: str, offer_refs: Sequence[str]) -> None:
        await self._add_relation("catalogs", catalog_ref, "offers", offer_refs)

    async def add_representations_to_offer(
        self, offer_ref: str, representation_refs: Sequence[str]
    ) -> None:
        await self._add_relation("offers", offer_ref, "representations", representation_refs)

    async def add_artifacts_to_representation(
        self, representation_ref: str, artifact_refs: Sequence[str]
    ) -> None:
        await self._add_relation("representations", representation_ref, "artifacts", artifact_refs)

    async def add_contracts_to_offer(self, offer_ref: str, contract_refs: Sequence[str]) -> None:
        await self._add_relation("offers", offer_ref, "contracts", contract_refs)

    async def add_rules_to_contract(self, contract_ref: str, rule_refs: Sequence[str]) -> None:
        await self._add_relation("contracts", contract_ref, "rules", rule_refs)

    async def _add_relation(
        self,
        collection: str,
        owner_ref: str,
        relation: str,
        refs: Sequence[str],
    ) -> None:
        client = await self._get_client()
        response = await client.post(
            f"/api/{collection}/{id_from_ref(owner_ref)}/{relation}",
            json=list(refs),
        )
        response.raise_for_status()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _json_object(response: httpx.Response, what: str) -> dict[str, Any]:
    try:
        document = response.json()
    except ValueError as exc:
        raise MalformedDescriptionError(
            f"{what} is not valid JSON", document=response.text
        ) from exc
    if not isinstance(document, dict):
        raise MalformedDescriptionError(f"{what} is not a JSON object", document=document)
    return document
