"""
IDS usage-policy generation for Dataspace Connector contract rules.

Maps the abstract usage policies onto ``IdsPermission`` models in the shape
the connector's policy parser recognises (provide-access, n-times-usage and
usage-during-interval patterns).
"""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from typing import Any

from dsc_controller.connectors.dsc.errors import InvalidPolicyError
from dsc_controller.connectors.dsc.models import (
    XSD_NS,
    AnyUsagePolicy,
    IdsConstraint,
    IdsPermission,
    NumberUsagesRestricted,
    PermissionRule,
    TimerangeRestricted,
    UnrestrictedPolicy,
)

IDS_CONTEXT = {
    "ids": "https://w3id.org/idsa/core/",
    "idsc": "https://w3id.org/idsa/code/",
}
IDS_CODE_NS = "https://w3id.org/idsa/code/"
AUTOGEN_NS = "https://w3id.org/idsa/autogen/"

_POLICY_TITLE = "Example Usage Policy"


def build_permission(policy: AnyUsagePolicy | None = None) -> IdsPermission:
    """
    Build the ``ids:Permission`` model for a usage policy.

    Args:
        policy: One of the usage policy models, or ``None`` for unrestricted use.

    Returns:
        A permission with freshly generated ``@id`` values.

    Raises:
        InvalidPolicyError: If the policy parameters are out of range or the
            policy kind is unknown.
    """
    if policy is None or isinstance(policy, UnrestrictedPolicy):
        return _unrestricted()
    if isinstance(policy, NumberUsagesRestricted):
        return _number_usages_restricted(policy)
    if isinstance(policy, TimerangeRestricted):
        return _timerange_restricted(policy)
    raise InvalidPolicyError("Usage policy not implemented by connector controller.", policy)


def encode_usage_policy(policy: AnyUsagePolicy | None = None) -> dict[str, Any]:
    """Render the permission for ``policy`` as a JSON-LD document."""
    return build_permission(policy).to_payload()


def build_permission_rule(policy: AnyUsagePolicy | None = None) -> PermissionRule:
    """Wrap the encoded policy as an unbound permission rule."""
    return PermissionRule(document=encode_usage_policy(policy))


def build_rule_description(policy: AnyUsagePolicy | None = None) -> dict[str, str]:
    """Request body for creating a contract rule on the local connector."""
    return {"value": json.dumps(encode_usage_policy(policy))}


def _unrestricted() -> IdsPermission:
    return IdsPermission(
        id=_autogen_id("permission"),
        context=IDS_CONTEXT,
        description="provide-access",
        title=_POLICY_TITLE,
        action="idsc:USE",
    )


def _number_usages_restricted(policy: NumberUsagesRestricted) -> IdsPermission:
    usage_times = policy.usage_times
    if isinstance(usage_times, bool) or not isinstance(usage_times, int) or usage_times <= 0:
        raise InvalidPolicyError(
            f"usage_times must be a positive integer, got {usage_times!r}", policy
        )

    return IdsPermission(
        id=_autogen_id("permission"),
        context=IDS_CONTEXT,
        description="n-times-usage",
        title=_POLICY_TITLE,
        action="idsc:USE",
        constraints=[
            IdsConstraint(
                id=_autogen_id("constraint"),
                left_operand="idsc:COUNT",
                operator="idsc:LTEQ",
                right_operand=usage_times,
                right_operand_type=f"{XSD_NS}double",
            )
        ],
    )


def _timerange_restricted(policy: TimerangeRestricted) -> IdsPermission:
    start = _as_utc(policy.start_time)
    end = _as_utc(policy.end_time)
    if start >= end:
        raise InvalidPolicyError(
            f"start_time {start.isoformat()} must be before end_time {end.isoformat()}",
            policy,
        )

    return IdsPermission(
        id=_autogen_id("permission"),
        context={"xsd": XSD_NS, **IDS_CONTEXT},
        description="usage-during-interval",
        title=_POLICY_TITLE,
        action=f"{IDS_CODE_NS}USE",
        constraints=[
            _time_constraint("AFTER", start),
            _time_constraint("BEFORE", end),
        ],
    )


def _time_constraint(operator: str, moment: datetime) -> IdsConstraint:
    return IdsConstraint(
        id=_autogen_id("constraint"),
        left_operand=f"{IDS_CODE_NS}POLICY_EVALUATION_TIME",
        operator=f"{IDS_CODE_NS}{operator}",
        right_operand=format_timestamp(moment),
        right_operand_type="xsd:dateTimeStamp",
    )


def _autogen_id(kind: str) -> str:
    return f"{AUTOGEN_NS}{kind}/{uuid.uuid4()}"


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps are taken to be UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def format_timestamp(moment: datetime) -> str:
    """Render a timestamp in UTC, e.g. ``2023-03-31T13:18:00.000Z``."""
    moment = _as_utc(moment)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
