"""Helpers for reading identifiers out of connector resource descriptors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

from dsc_controller.connectors.dsc.errors import MalformedReferenceError, MissingSelfLinkError


def self_ref(descriptor: Mapping[str, Any]) -> str:
    """
    Return the canonical ``self`` link of a resource descriptor.

    Args:
        descriptor: HAL resource as returned by the connector, e.g.
            ``{"_links": {"self": {"href": "https://host/api/offers/<uuid>"}}}``.

    Raises:
        MissingSelfLinkError: If the descriptor carries no usable self link.
    """
    links = descriptor.get("_links") if isinstance(descriptor, Mapping) else None
    link = links.get("self") if isinstance(links, Mapping) else None
    href = link.get("href") if isinstance(link, Mapping) else None
    if not isinstance(href, str) or not href:
        raise MissingSelfLinkError(descriptor)
    return href


def id_from_ref(ref: str) -> str:
    """Return the trailing path segment of a resource reference."""
    path = urlsplit(ref).path
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        raise MalformedReferenceError(ref)
    return segments[-1]


def self_id(descriptor: Mapping[str, Any]) -> str:
    return id_from_ref(self_ref(descriptor))
