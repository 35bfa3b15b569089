"""
Pydantic models for the Dataspace Connector controller.

Three groups live here: the immutable value types exchanged between the
controller components, validated views on the JSON-LD documents a remote
connector returns, and the inputs of the provider-side publication flow.
JSON-LD keys are mapped onto snake_case fields via aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from dsc_controller.connectors.dsc.errors import (
    InvalidPolicyError,
    MalformedDescriptionError,
    UnboundRuleError,
)

XSD_NS = "http://www.w3.org/2001/XMLSchema#"

# ---------------------------------------------------------------------------
# Usage policies
# ---------------------------------------------------------------------------


class _UsagePolicyBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class UnrestrictedPolicy(_UsagePolicyBase):
    """Use without any limiting condition."""

    type: Literal["Unrestricted"] = "Unrestricted"


class NumberUsagesRestricted(_UsagePolicyBase):
    """Use at most ``usage_times`` times."""

    type: Literal["NumberUsagesRestricted"] = "NumberUsagesRestricted"
    usage_times: int = Field(alias="usageTimes")


class TimerangeRestricted(_UsagePolicyBase):
    """Use only between ``start_time`` and ``end_time``."""

    type: Literal["TimerangeRestricted"] = "TimerangeRestricted"
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")


AnyUsagePolicy = UnrestrictedPolicy | NumberUsagesRestricted | TimerangeRestricted

# Discriminated union over the ``type`` field
UsagePolicy = Annotated[AnyUsagePolicy, Field(discriminator="type")]

_usage_policy_adapter: TypeAdapter[Any] = TypeAdapter(UsagePolicy)


def parse_usage_policy(data: dict[str, Any]) -> AnyUsagePolicy:
    """
    Parse a ``{"type": ..., ...}`` mapping into its usage policy model.

    Raises:
        InvalidPolicyError: If the kind is unknown or a parameter has the wrong shape.
    """
    try:
        return _usage_policy_adapter.validate_python(data)
    except ValidationError as exc:
        raise InvalidPolicyError(
            f"Usage policy could not be parsed: {exc.error_count()} invalid field(s)",
            data,
        ) from exc


# ---------------------------------------------------------------------------
# Negotiation values
# ---------------------------------------------------------------------------


class OfferedResource(BaseModel):
    """One resource offered in a remote connector's catalog."""

    model_config = ConfigDict(frozen=True)

    offer_id: str
    contract_offer_id: str
    asset_id: str
    asset_name: str


class ContractAgreement(BaseModel):
    """Agreement concluded by a successful negotiation."""

    model_config = ConfigDict(frozen=True)

    contract_id: str


class ArtifactReference(BaseModel):
    """Self link of an artifact covered by an agreement."""

    model_config = ConfigDict(frozen=True)

    url: str


class PermissionRule(BaseModel):
    """
    IDS permission document plus the artifact it applies to.

    A rule without ``target`` is a template; ``to_payload`` refuses to
    render it, so only bound rules can reach a remote connector.
    """

    model_config = ConfigDict(frozen=True)

    document: dict[str, Any]
    target: str | None = None

    def bind(self, target: str) -> PermissionRule:
        return self.model_copy(update={"target": target})

    def to_payload(self) -> dict[str, Any]:
        if not self.target:
            raise UnboundRuleError(self.document)
        return {**self.document, "ids:target": self.target}


# ---------------------------------------------------------------------------
# IDS usage policy documents
# ---------------------------------------------------------------------------


class IdsConstraint(BaseModel):
    """Single IDS constraint (left operand / operator / typed right operand)."""

    model_config = ConfigDict(frozen=True)

    id: str
    left_operand: str
    operator: str
    right_operand: int | str
    right_operand_type: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "@type": "ids:Constraint",
            "@id": self.id,
            "ids:rightOperand": {"@value": self.right_operand, "@type": self.right_operand_type},
            "ids:leftOperand": {"@id": self.left_operand},
            "ids:operator": {"@id": self.operator},
        }


class IdsPermission(BaseModel):
    """IDS permission with optional constraints, as the connector's policy parser reads it."""

    model_config = ConfigDict(frozen=True)

    id: str
    context: dict[str, str]
    description: str
    title: str
    action: str
    constraints: list[IdsConstraint] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "@context": dict(self.context),
            "@type": "ids:Permission",
            "@id": self.id,
            "ids:description": [_string_literal(self.description)],
            "ids:title": [_string_literal(self.title)],
            "ids:action": [{"@id": self.action}],
        }
        if self.constraints:
            payload["ids:constraint"] = [c.to_payload() for c in self.constraints]
        return payload


def _string_literal(value: str) -> dict[str, str]:
    return {"@value": value, "@type": f"{XSD_NS}string"}


# ---------------------------------------------------------------------------
# Remote description documents
# ---------------------------------------------------------------------------


class _IdsDocument(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class IdsReference(_IdsDocument):
    id: str = Field(alias="@id")


class IdsLiteral(_IdsDocument):
    value: str = Field(alias="@value")


class ConnectorDescription(_IdsDocument):
    """Top-level connector self-description."""

    resource_catalog: list[IdsReference] = Field(
        default_factory=list, alias="ids:resourceCatalog"
    )


class RepresentationDescription(_IdsDocument):
    id: str | None = Field(default=None, alias="@id")
    instance: list[IdsReference] = Field(alias="ids:instance", min_length=1)


class OfferedResourceDescription(_IdsDocument):
    id: str = Field(alias="@id")
    contract_offer: list[IdsReference] = Field(alias="ids:contractOffer", min_length=1)
    representation: list[RepresentationDescription] = Field(
        alias="ids:representation", min_length=1
    )
    title: list[IdsLiteral] = Field(alias="ids:title", min_length=1)


class CatalogDescription(_IdsDocument):
    """Resource catalog description; an empty catalog omits the offer list."""

    offered_resource: list[OfferedResourceDescription] = Field(
        default_factory=list, alias="ids:offeredResource"
    )


class ContractOfferDescription(_IdsDocument):
    id: str | None = Field(default=None, alias="@id")
    permission: list[dict[str, Any]] = Field(alias="ids:permission", min_length=1)


class _EmbeddedArtifacts(_IdsDocument):
    artifacts: list[dict[str, Any]]


class AgreementArtifactsPage(_IdsDocument):
    """HAL page listing the artifacts of one agreement."""

    embedded: _EmbeddedArtifacts = Field(alias="_embedded")


_DocumentT = TypeVar("_DocumentT", bound=BaseModel)


def parse_document(model: type[_DocumentT], document: Any, what: str) -> _DocumentT:
    """Validate a remote document, turning schema mismatches into ``MalformedDescriptionError``."""
    try:
        return model.model_validate(document)
    except ValidationError as exc:
        raise MalformedDescriptionError(
            f"{what} is missing required IDS fields",
            document=document,
            errors=exc.errors(include_url=False, include_context=False),
        ) from exc


# ---------------------------------------------------------------------------
# Publication inputs
# ---------------------------------------------------------------------------

DatabaseType = Literal["Postgres", "Oracle"]


class ArtifactSpec(BaseModel):
    name: str
    description: str | None = None


class OfferSpec(BaseModel):
    """Metadata of an offered resource."""

    name: str
    description: str | None = None
    keywords: list[str] = Field(default_factory=list)
    publisher: str | None = None
    language: str | None = None
    license: str | None = None
    sovereign: str | None = None
    start: datetime | None = None
    end: datetime | None = None


class RepresentationSpec(BaseModel):
    name: str | None = None
    standard: str | None = None
    media_type: str


class CatalogSpec(BaseModel):
    name: str
    description: str | None = None


class ApiKeyAuth(BaseModel):
    header_key: str
    value: str


class BasicAuth(BaseModel):
    username: str
    password: str


class ResourcePolling(BaseModel):
    """Timer settings (milliseconds) for polling an HTTP source."""

    delay: int = Field(ge=0)
    period: int = Field(gt=0)


class PublishedOffer(BaseModel):
    """Self links of everything created while publishing an offer."""

    catalog_ref: str
    offer_ref: str
    representation_ref: str
    contract_ref: str
    rule_ref: str
