"""
Artifact retrieval for concluded contract agreements.

Resolves the artifacts an agreement covers and triggers data queries on the
local connector, which pulls the data from the provider and either returns
it inline or forwards it to pre-provisioned sink routes.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from dsc_controller.connectors.dsc.client import DSCClient
from dsc_controller.connectors.dsc.errors import MalformedDescriptionError, NoRouteConfiguredError
from dsc_controller.connectors.dsc.models import (
    AgreementArtifactsPage,
    ArtifactReference,
    parse_document,
)
from dsc_controller.connectors.dsc.references import id_from_ref, self_ref
from dsc_controller.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SinkRoute:
    """
    Caller-owned handle on the route transferred data is forwarded to.

    Filled in by ``PublicationService.provision_http_sink`` and read by
    ``ArtifactRetrieval.transfer_for_agreement``. The handle is not locked:
    the last provisioning call wins, and provisioning while a transfer reads
    the same handle is unsupported.
    """

    route_id: str | None = None

    @property
    def is_provisioned(self) -> bool:
        return bool(self.route_id)


class ArtifactRetrieval:
    """Fetches the data granted by contract agreements."""

    def __init__(self, client: DSCClient) -> None:
        self._client = client

    async def agreement_artifacts(self, contract_id: str) -> list[ArtifactReference]:
        """Return the artifacts bound to an agreement, in the order the connector lists them."""
        page = parse_document(
            AgreementArtifactsPage,
            await self._client.get_agreement_artifacts(contract_id),
            "Agreement artifact listing",
        )
        return [ArtifactReference(url=self_ref(artifact)) for artifact in page.embedded.artifacts]

    async def fetch(
        self,
        artifact_url: str,
        force_download: bool | None = None,
        forward_to_route_ids: Sequence[str] | None = None,
    ) -> bytes:
        """
        Query an artifact's data.

        Args:
            artifact_url: Self link of the artifact on the local connector.
            force_download: Make the connector pull fresh data from the provider
                instead of serving a previously stored copy.
            forward_to_route_ids: Sink routes that should additionally receive the data.

        Returns:
            The raw payload returned by the connector.
        """
        return await self._client.get_data(
            id_from_ref(artifact_url),
            download=force_download,
            route_ids=forward_to_route_ids,
        )

    async def transfer_for_agreement(self, contract_id: str, sink: SinkRoute | None) -> bytes:
        """
        Push the data of an agreement to a provisioned sink route.

        Only the first artifact of the agreement is transferred.

        Raises:
            NoRouteConfiguredError: If ``sink`` has not been provisioned.
            MalformedDescriptionError: If the agreement covers no artifacts.
        """
        route_id = sink.route_id if sink is not None else None
        if not route_id:
            raise NoRouteConfiguredError(contract_id)

        artifacts = await self.agreement_artifacts(contract_id)
        if not artifacts:
            raise MalformedDescriptionError(
                f"Agreement {contract_id} covers no artifacts", document=contract_id
            )
        if len(artifacts) > 1:
            logger.warning(
                "dsc_transfer_first_artifact_only",
                contract_id=contract_id,
                artifact_count=len(artifacts),
            )

        return await self.fetch(artifacts[0].url, True, [route_id])
