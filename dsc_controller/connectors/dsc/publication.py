"""
Publish-to-dataspace operations on the local Dataspace Connector.

Covers the provider side of the exchange:
  - artifacts backed by inline values, HTTP endpoints or database queries
  - offers (catalog, offered resource, representation, contract, rule)
  - HTTP sink routes that negotiated data can be forwarded to
"""

from __future__ import annotations

from typing import Any

from dsc_controller.connectors.dsc.camel import build_polling_route
from dsc_controller.connectors.dsc.client import DSCClient
from dsc_controller.connectors.dsc.errors import InvalidArtifactSourceError
from dsc_controller.connectors.dsc.models import (
    AnyUsagePolicy,
    ApiKeyAuth,
    ArtifactSpec,
    BasicAuth,
    CatalogSpec,
    DatabaseType,
    OfferSpec,
    PublishedOffer,
    RepresentationSpec,
    ResourcePolling,
)
from dsc_controller.connectors.dsc.policy_builder import build_rule_description, format_timestamp
from dsc_controller.connectors.dsc.references import self_id, self_ref
from dsc_controller.connectors.dsc.retrieval import SinkRoute
from dsc_controller.core.logging import get_logger

logger = get_logger(__name__)

ROUTE_DEPLOY_CAMEL = "Camel"

_DATABASE_DRIVERS: dict[str, str] = {
    "Postgres": "org.postgresql.Driver",
    "Oracle": "oracle.jdbc.OracleDriver",
}


class PublicationService:
    """
    Creates and links connector resources so remote consumers can negotiate them.

    Every ``create_*`` method returns the self link of the created artifact,
    which is what ``create_offer_for_artifact`` expects.
    """

    def __init__(self, client: DSCClient, camel_artifact_base_url: str | None = None) -> None:
        self._client = client
        self._camel_artifact_base_url = camel_artifact_base_url or client.config.base_url

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    async def create_value_artifact(self, artifact: ArtifactSpec, value: str) -> str:
        """Create an artifact that stores ``value`` directly in the connector."""
        created = await self._client.create_artifact(
            {
                "title": artifact.name,
                "description": artifact.description,
                "value": value,
            }
        )
        return self_ref(created)

    async def create_http_endpoint_artifact(
        self,
        artifact: ArtifactSpec,
        endpoint_url: str,
        mime_type: str,
        api_key: ApiKeyAuth | None = None,
        basic_auth: BasicAuth | None = None,
        polling: ResourcePolling | None = None,
    ) -> str:
        """
        Create an artifact backed by an HTTP resource.

        With ``polling`` the connector copies the resource into the artifact on a
        timer; otherwise the resource is proxied through a route on every query.

        Args:
            artifact: Title and description of the artifact.
            endpoint_url: URL of the backing HTTP resource.
            mime_type: Media type requested from the resource when polling.
            api_key: Header-based credentials for the resource.
            basic_auth: Basic credentials for the resource.
            polling: Timer settings; switches to the polled variant.

        Raises:
            InvalidArtifactSourceError: If both ``api_key`` and ``basic_auth`` are given.
        """
        if api_key and basic_auth:
            raise InvalidArtifactSourceError("Either basic_auth or api_key can be set, not both.")

        if polling:
            created = await self._client.create_artifact({"title": artifact.name})
            artifact_ref = self_ref(created)
            config = self._client.config
            await self._client.add_camel_routes(
                build_polling_route(
                    artifact_id=self_id(created),
                    source_url=endpoint_url,
                    mime_type=mime_type,
                    polling=polling,
                    connector_base_url=self._camel_artifact_base_url,
                    connector_auth=BasicAuth(username=config.username, password=config.password),
                    source_auth=basic_auth,
                )
            )
            logger.info("dsc_polled_artifact_created", artifact_ref=artifact_ref)
            return artifact_ref

        endpoint = await self._client.create_endpoint(
            {"location": endpoint_url, "type": "GENERIC"}
        )
        if api_key or basic_auth:
            data_source = await self._client.create_data_source(
                _rest_data_source(api_key=api_key, basic_auth=basic_auth)
            )
            await self._client.link_data_source(self_ref(endpoint), self_ref(data_source))

        return await self._create_artifact_for_endpoint(artifact, endpoint)

    async def create_database_artifact(
        self,
        artifact: ArtifactSpec,
        url: str,
        database: DatabaseType,
        username: str,
        password: str,
        sql_query: str,
    ) -> str:
        """Create an artifact whose data is the result of ``sql_query`` on a JDBC database."""
        driver = _DATABASE_DRIVERS.get(database)
        if driver is None:
            raise InvalidArtifactSourceError(f"Database Type {database} not supported")

        data_source = await self._client.create_data_source(
            {
                "type": "DATABASE",
                "url": url,
                "driverClassName": driver,
                "basicAuth": {"key": username, "value": password},
            }
        )
        endpoint = await self._client.create_endpoint(
            {
                "location": f"sql:{sql_query}?initialDelay=10000&delay=15000&useIterator=false",
                "type": "GENERIC",
            }
        )
        await self._client.link_data_source(self_ref(endpoint), self_ref(data_source))

        return await self._create_artifact_for_endpoint(artifact, endpoint)

    async def _create_artifact_for_endpoint(
        self, artifact: ArtifactSpec, endpoint: dict[str, Any]
    ) -> str:
        route = await self._client.create_route(
            {"title": f"{artifact.name} Route", "deploy": ROUTE_DEPLOY_CAMEL}
        )
        route_ref = self_ref(route)
        await self._client.set_route_start(route_ref, self_ref(endpoint))

        created = await self._client.create_artifact(
            {
                "title": artifact.name,
                "description": artifact.description,
                "accessUrl": route_ref,
            }
        )
        artifact_ref = self_ref(created)
        logger.info("dsc_routed_artifact_created", artifact_ref=artifact_ref, route_ref=route_ref)
        return artifact_ref

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    async def create_offer_for_artifact(
        self,
        artifact_ref: str,
        offer: OfferSpec,
        representation: RepresentationSpec,
        catalog: CatalogSpec,
        policy: AnyUsagePolicy | None = None,
    ) -> PublishedOffer:
        """
        Publish an artifact as an offered resource in a new catalog.

        Creates catalog, offered resource, representation, contract and rule,
        then links them so the artifact shows up in the connector's
        self-description with ``policy`` as its usage terms (unrestricted when
        omitted).

        Raises:
            InvalidPolicyError: If ``policy`` cannot be encoded.
        """
        # Encode first so a bad policy fails before anything is created
        rule_description = build_rule_description(policy)

        created_catalog = await self._client.create_catalog(
            {"title": catalog.name, "description": catalog.description}
        )
        created_offer = await self._client.create_offer(
            {
                "title": offer.name,
                "description": offer.description,
                "keywords": offer.keywords,
                "publisher": offer.publisher,
                "language": offer.language,
                "license": offer.license,
                "sovereign": offer.sovereign,
                "samples": [],
            }
        )
        created_representation = await self._client.create_representation(
            {
                "title": representation.name,
                "mediaType": representation.media_type,
                "standard": representation.standard,
            }
        )
        contract = await self._client.create_contract(
            {
                "title": f"{offer.name} Contract Offer",
                "description": f"created for offer {offer.name}",
                "start": format_timestamp(offer.start) if offer.start else None,
                "end": format_timestamp(offer.end) if offer.end else None,
            }
        )
        rule = await self._client.create_rule(rule_description)

        published = PublishedOffer(
            catalog_ref=self_ref(created_catalog),
            offer_ref=self_ref(created_offer),
            representation_ref=self_ref(created_representation),
            contract_ref=self_ref(contract),
            rule_ref=self_ref(rule),
        )

        await self._client.add_offers_to_catalog(published.catalog_ref, [published.offer_ref])
        await self._client.add_representations_to_offer(
            published.offer_ref, [published.representation_ref]
        )
        await self._client.add_artifacts_to_representation(
            published.representation_ref, [artifact_ref]
        )
        await self._client.add_contracts_to_offer(published.offer_ref, [published.contract_ref])
        await self._client.add_rules_to_contract(published.contract_ref, [published.rule_ref])

        logger.info(
            "dsc_offer_published",
            artifact_ref=artifact_ref,
            offer_ref=published.offer_ref,
            catalog_ref=published.catalog_ref,
        )
        return published

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    async def provision_http_sink(self, url: str, sink: SinkRoute | None = None) -> SinkRoute:
        """
        Create a route ending in ``url`` and record it in ``sink``.

        Args:
            url: HTTP endpoint that should receive transferred data.
            sink: Handle to update; a new one is created when omitted.

        Returns:
            The updated handle, ready for ``transfer_for_agreement``.
        """
        sink = sink if sink is not None else SinkRoute()

        endpoint = await self._client.create_endpoint({"location": url, "type": "GENERIC"})
        route = await self._client.create_route(
            {"title": "Datasink route", "deploy": ROUTE_DEPLOY_CAMEL}
        )
        route_ref = self_ref(route)
        await self._client.set_route_end(route_ref, self_ref(endpoint))

        sink.route_id = route_ref
        logger.info("dsc_sink_route_provisioned", url=url, route_ref=route_ref)
        return sink


def _rest_data_source(
    *, api_key: ApiKeyAuth | None, basic_auth: BasicAuth | None
) -> dict[str, Any]:
    if api_key:
        return {"type": "REST", "apiKey": {"key": api_key.header_key, "value": api_key.value}}
    if basic_auth is None:
        raise InvalidArtifactSourceError("REST data source needs api_key or basic_auth")
    return {
        "type": "REST",
        "basicAuth": {"key": basic_auth.username, "value": basic_auth.password},
    }
