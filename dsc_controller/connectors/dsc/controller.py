"""Facade over one local Dataspace Connector: discovery, negotiation, retrieval and publication."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from dsc_controller.connectors.dsc.catalog import CatalogDiscovery
from dsc_controller.connectors.dsc.client import DSCClient, DSCConfig
from dsc_controller.connectors.dsc.errors import EmptyCatalogError, MalformedDescriptionError
from dsc_controller.connectors.dsc.models import (
    AnyUsagePolicy,
    ApiKeyAuth,
    ArtifactReference,
    ArtifactSpec,
    BasicAuth,
    CatalogSpec,
    ContractAgreement,
    DatabaseType,
    OfferedResource,
    OfferSpec,
    PublishedOffer,
    RepresentationSpec,
    ResourcePolling,
)
from dsc_controller.connectors.dsc.negotiation import NegotiationEngine
from dsc_controller.connectors.dsc.publication import PublicationService
from dsc_controller.connectors.dsc.retrieval import ArtifactRetrieval, SinkRoute
from dsc_controller.core.config import Settings, get_settings
from dsc_controller.core.logging import configure_logging_from_settings, get_logger

logger = get_logger(__name__)


class DSCController:
    """
    Drives a local Dataspace Connector on behalf of one participant.

    Consumer side: list remote offers, negotiate contracts, pull or forward
    agreed data. Provider side: publish artifacts and offers, provision sinks.
    All operations are independent coroutines; the only state shared between
    them is the caller-owned ``SinkRoute`` handle.
    """

    def __init__(
        self,
        config: DSCConfig,
        *,
        camel_artifact_base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client = DSCClient(config, transport=transport)
        self.catalog = CatalogDiscovery(self.client)
        self.negotiation = NegotiationEngine(self.client, self.catalog)
        self.retrieval = ArtifactRetrieval(self.client)
        self.publication = PublicationService(
            self.client, camel_artifact_base_url=camel_artifact_base_url
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> DSCController:
        settings = settings or get_settings()
        if settings.setup_logging:
            configure_logging_from_settings(settings)
        return cls(
            DSCConfig.from_settings(settings),
            camel_artifact_base_url=settings.camel_artifact_base_url,
            transport=transport,
        )

    async def __aenter__(self) -> DSCController:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    async def get_description(self, endpoint_url: str) -> dict[str, Any]:
        return await self.catalog.get_description(endpoint_url)

    async def list_offers(self, endpoint_url: str) -> list[OfferedResource]:
        return await self.catalog.list_offers(endpoint_url)

    async def get_offer_description(
        self, endpoint_url: str, contract_offer_id: str
    ) -> dict[str, Any]:
        return await self.catalog.get_offer_description(endpoint_url, contract_offer_id)

    async def negotiate(
        self,
        endpoint_url: str,
        offer: OfferedResource,
        policy: AnyUsagePolicy | None = None,
    ) -> ContractAgreement:
        return await self.negotiation.negotiate(endpoint_url, offer, policy)

    async def agreement_artifacts(self, contract_id: str) -> list[ArtifactReference]:
        return await self.retrieval.agreement_artifacts(contract_id)

    async def fetch(
        self,
        artifact_url: str,
        force_download: bool | None = None,
        forward_to_route_ids: Sequence[str] | None = None,
    ) -> bytes:
        return await self.retrieval.fetch(artifact_url, force_download, forward_to_route_ids)

    async def transfer_for_agreement(self, contract_id: str, sink: SinkRoute | None) -> bytes:
        return await self.retrieval.transfer_for_agreement(contract_id, sink)

    async def fetch_first(self, endpoint_url: str) -> bytes:
        """
        Negotiate the first offer of a remote connector and return its first artifact.

        Raises:
            EmptyCatalogError: If the remote catalog holds no offers.
            MalformedDescriptionError: If the agreement covers no artifacts.
        """
        offers = await self.catalog.list_offers(endpoint_url)
        if not offers:
            raise EmptyCatalogError(
                endpoint_url, f"Connector {endpoint_url} offers no resources"
            )

        agreement = await self.negotiation.negotiate(endpoint_url, offers[0])

        artifacts = await self.retrieval.agreement_artifacts(agreement.contract_id)
        if not artifacts:
            raise MalformedDescriptionError(
                f"Agreement {agreement.contract_id} covers no artifacts",
                document=agreement.contract_id,
            )

        logger.info(
            "dsc_fetching_first_artifact",
            endpoint_url=endpoint_url,
            contract_id=agreement.contract_id,
            artifact_url=artifacts[0].url,
        )
        return await self.retrieval.fetch(artifacts[0].url)

    # ------------------------------------------------------------------
    # Provider side
    # ------------------------------------------------------------------

    async def create_value_artifact(self, artifact: ArtifactSpec, value: str) -> str:
        return await self.publication.create_value_artifact(artifact, value)

    async def create_http_endpoint_artifact(
        self,
        artifact: ArtifactSpec,
        endpoint_url: str,
        mime_type: str,
        api_key: ApiKeyAuth | None = None,
        basic_auth: BasicAuth | None = None,
        polling: ResourcePolling | None = None,
    ) -> str:
        return await self.publication.create_http_endpoint_artifact(
            artifact, endpoint_url, mime_type, api_key, basic_auth, polling
        )

    async def create_database_artifact(
        self,
        artifact: ArtifactSpec,
        url: str,
        database: DatabaseType,
        username: str,
        password: str,
        sql_query: str,
    ) -> str:
        return await self.publication.create_database_artifact(
            artifact, url, database, username, password, sql_query
        )

    async def create_offer_for_artifact(
        self,
        artifact_ref: str,
        offer: OfferSpec,
        representation: RepresentationSpec,
        catalog: CatalogSpec,
        policy: AnyUsagePolicy | None = None,
    ) -> PublishedOffer:
        return await self.publication.create_offer_for_artifact(
            artifact_ref, offer, representation, catalog, policy
        )

    async def provision_http_sink(self, url: str, sink: SinkRoute | None = None) -> SinkRoute:
        return await self.publication.provision_http_sink(url, sink)
