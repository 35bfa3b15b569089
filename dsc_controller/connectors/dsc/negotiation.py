"""
Contract negotiation with remote Dataspace Connectors.

Coordinates the contract request flow:
  1. Fetch the contract offer description
  2. Pick the permission rule (remote offer, or one built from a usage policy)
  3. Bind the rule to the requested artifact
  4. Send the contract request message
  5. Read the agreement identifier from the response
"""

from __future__ import annotations

from typing import Any

from dsc_controller.connectors.dsc.catalog import CatalogDiscovery
from dsc_controller.connectors.dsc.client import DSCClient
from dsc_controller.connectors.dsc.models import (
    AnyUsagePolicy,
    ContractAgreement,
    ContractOfferDescription,
    OfferedResource,
    PermissionRule,
    parse_document,
)
from dsc_controller.connectors.dsc.policy_builder import build_permission_rule
from dsc_controller.connectors.dsc.references import id_from_ref, self_ref
from dsc_controller.core.logging import get_logger

logger = get_logger(__name__)


class NegotiationEngine:
    """
    Negotiates contract agreements for offered resources.

    The rule sent to the provider is the first permission of its contract
    offer, unless the caller passes a usage policy to build the rule from.
    The consumer never signs automatically, so the request always carries
    ``download=false``.
    """

    def __init__(self, client: DSCClient, catalog: CatalogDiscovery | None = None) -> None:
        self._client = client
        self._catalog = catalog or CatalogDiscovery(client)

    async def negotiate(
        self,
        endpoint_url: str,
        offer: OfferedResource,
        policy: AnyUsagePolicy | None = None,
    ) -> ContractAgreement:
        """
        Request a contract for ``offer`` and return the resulting agreement.

        Args:
            endpoint_url: Base URL of the providing connector.
            offer: Offered resource as listed by ``CatalogDiscovery``.
            policy: Optional usage policy; when given, the rule is built from it
                instead of taken from the remote contract offer.

        Raises:
            MalformedDescriptionError: If the contract offer lacks a permission.
            NegotiationRejectedError: If the provider declines the request.
        """
        base = endpoint_url.rstrip("/")
        artifact_url = f"{base}/api/artifacts/{offer.asset_id}"
        offer_url = f"{base}/api/offers/{offer.offer_id}"

        description = await self._catalog.get_offer_description(base, offer.contract_offer_id)

        rule = self._select_rule(description, policy).bind(artifact_url)

        logger.info(
            "dsc_negotiating_contract",
            endpoint_url=base,
            offer_id=offer.offer_id,
            asset_id=offer.asset_id,
            policy_override=policy is not None,
        )

        response = await self._client.send_contract_request(
            f"{base}{self._client.config.ids_path}",
            [offer_url],
            [artifact_url],
            False,
            [rule],
        )

        agreement = ContractAgreement(contract_id=id_from_ref(self_ref(response)))

        logger.info(
            "dsc_contract_agreed",
            endpoint_url=base,
            offer_id=offer.offer_id,
            contract_id=agreement.contract_id,
        )
        return agreement

    @staticmethod
    def _select_rule(
        description: dict[str, Any], policy: AnyUsagePolicy | None
    ) -> PermissionRule:
        # The offer must be well-formed even when the caller supplies the policy
        contract_offer = parse_document(
            ContractOfferDescription, description, "Contract offer description"
        )
        if policy is not None:
            return build_permission_rule(policy)
        return PermissionRule(document=contract_offer.permission[0])
