"""
Apache Camel route definitions for polled HTTP artifacts.

The connector executes these routes itself: a timer fetches the source URL
and PUTs the body into the artifact's data endpoint on the same connector.
"""

from __future__ import annotations

import base64
from xml.etree import ElementTree as ET

from dsc_controller.connectors.dsc.models import BasicAuth, ResourcePolling

CAMEL_SPRING_NS = "http://camel.apache.org/schema/spring"


def build_polling_route(
    *,
    artifact_id: str,
    source_url: str,
    mime_type: str,
    polling: ResourcePolling,
    connector_base_url: str,
    connector_auth: BasicAuth,
    source_auth: BasicAuth | None = None,
) -> str:
    """
    Build the XML of a route that periodically copies ``source_url`` into an artifact.

    Args:
        artifact_id: Identifier of the artifact receiving the data.
        source_url: HTTP resource to poll.
        mime_type: Value of the ``Accept`` header sent to the source.
        polling: Timer delay and period in milliseconds.
        connector_base_url: Address under which the route reaches the connector.
        connector_auth: Credentials for the connector's artifact data endpoint.
        source_auth: Optional basic credentials for the source.
    """
    route_id = f"poll-{artifact_id}"
    routes = ET.Element("routes", {"xmlns": CAMEL_SPRING_NS})
    route = ET.SubElement(routes, "route", {"id": route_id})

    ET.SubElement(
        route,
        "from",
        {"uri": f"timer://{route_id}?delay={polling.delay}&period={polling.period}"},
    )

    _set_header(route, "CamelHttpMethod", "GET")
    if source_auth is not None:
        _set_header(route, "Authorization", _basic(source_auth))
    _set_header(route, "Accept", mime_type)
    ET.SubElement(route, "toD", {"uri": source_url})

    _set_header(route, "CamelHttpMethod", "PUT")
    _set_header(route, "Authorization", _basic(connector_auth))
    _set_header(route, "Content-Type", "application/octet-stream")
    ET.SubElement(
        route,
        "to",
        {"uri": f"{connector_base_url.rstrip('/')}/api/artifacts/{artifact_id}/data"},
    )

    return ET.tostring(routes, encoding="unicode")


def _set_header(route: ET.Element, name: str, value: str) -> None:
    header = ET.SubElement(route, "setHeader", {"name": name})
    ET.SubElement(header, "constant").text = value


def _basic(auth: BasicAuth) -> str:
    token = base64.b64encode(f"{auth.username}:{auth.password}".encode()).decode("ascii")
    return f"Basic {token}"
