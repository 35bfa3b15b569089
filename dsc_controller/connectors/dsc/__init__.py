"""Dataspace Connector controller: catalog discovery, contract negotiation and data transfer."""

from dsc_controller.connectors.dsc.catalog import CatalogDiscovery
from dsc_controller.connectors.dsc.client import DSCClient, DSCConfig
from dsc_controller.connectors.dsc.controller import DSCController
from dsc_controller.connectors.dsc.errors import (
    DSCControllerError,
    EmptyCatalogError,
    InvalidArtifactSourceError,
    InvalidPolicyError,
    MalformedDescriptionError,
    MalformedReferenceError,
    MissingSelfLinkError,
    NegotiationRejectedError,
    NoRouteConfiguredError,
    UnboundRuleError,
)
from dsc_controller.connectors.dsc.models import (
    ArtifactReference,
    ContractAgreement,
    NumberUsagesRestricted,
    OfferedResource,
    PermissionRule,
    TimerangeRestricted,
    UnrestrictedPolicy,
    UsagePolicy,
    parse_usage_policy,
)
from dsc_controller.connectors.dsc.negotiation import NegotiationEngine
from dsc_controller.connectors.dsc.policy_builder import encode_usage_policy
from dsc_controller.connectors.dsc.publication import PublicationService
from dsc_controller.connectors.dsc.references import id_from_ref, self_ref
from dsc_controller.connectors.dsc.retrieval import ArtifactRetrieval, SinkRoute

__all__ = [
    "ArtifactReference",
    "ArtifactRetrieval",
    "CatalogDiscovery",
    "ContractAgreement",
    "DSCClient",
    "DSCConfig",
    "DSCController",
    "DSCControllerError",
    "EmptyCatalogError",
    "InvalidArtifactSourceError",
    "InvalidPolicyError",
    "MalformedDescriptionError",
    "MalformedReferenceError",
    "MissingSelfLinkError",
    "NegotiationEngine",
    "NegotiationRejectedError",
    "NoRouteConfiguredError",
    "NumberUsagesRestricted",
    "OfferedResource",
    "PermissionRule",
    "PublicationService",
    "SinkRoute",
    "TimerangeRestricted",
    "UnboundRuleError",
    "UnrestrictedPolicy",
    "UsagePolicy",
    "encode_usage_policy",
    "id_from_ref",
    "parse_usage_policy",
    "self_ref",
]
