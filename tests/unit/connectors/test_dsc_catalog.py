"""Unit tests for catalog discovery against a scripted remote connector."""

from __future__ import annotations

import pytest

from dsc_controller.connectors.dsc.catalog import CatalogDiscovery
from dsc_controller.connectors.dsc.client import DSCClient
from dsc_controller.connectors.dsc.errors import EmptyCatalogError, MalformedDescriptionError
from dsc_controller.connectors.dsc.models import OfferedResource
from tests.tools.fake_connector import (
    PROVIDER_URL,
    FakeConnector,
    catalog_description,
    connector_description,
    offered_resource,
)

CATALOG_URL = f"{PROVIDER_URL}/api/catalogs/cat-1"


@pytest.fixture
def discovery(dsc_client: DSCClient) -> CatalogDiscovery:
    return CatalogDiscovery(dsc_client)


class TestListOffers:
    @pytest.mark.asyncio
    async def test_single_offer(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        fake_connector.describe(None, connector_description("cat-1"))
        fake_connector.describe(
            CATALOG_URL, catalog_description(offered_resource("o1", "c1", "a1", "table"))
        )

        offers = await discovery.list_offers(PROVIDER_URL)

        assert offers == [
            OfferedResource(
                offer_id="o1", contract_offer_id="c1", asset_id="a1", asset_name="table"
            )
        ]

    @pytest.mark.asyncio
    async def test_offers_keep_catalog_order(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        fake_connector.describe(None, connector_description("cat-1"))
        fake_connector.describe(
            CATALOG_URL,
            catalog_description(
                offered_resource("o2", "c2", "a2", "second"),
                offered_resource("o1", "c1", "a1", "first"),
                offered_resource("o3", "c3", "a3", "third"),
            ),
        )

        offers = await discovery.list_offers(PROVIDER_URL)

        assert [offer.offer_id for offer in offers] == ["o2", "o1", "o3"]
        assert [offer.asset_name for offer in offers] == ["second", "first", "third"]

    @pytest.mark.asyncio
    async def test_only_first_catalog_is_read(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        fake_connector.describe(None, connector_description("cat-1", "cat-2"))
        fake_connector.describe(
            CATALOG_URL, catalog_description(offered_resource("o1", "c1", "a1", "table"))
        )

        await discovery.list_offers(PROVIDER_URL)

        element_ids = [
            request.url.params.get("elementId") for request in fake_connector.requests
        ]
        assert element_ids == [None, CATALOG_URL]

    @pytest.mark.asyncio
    async def test_recipient_is_ids_endpoint(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        fake_connector.describe(None, connector_description("cat-1"))
        fake_connector.describe(CATALOG_URL, catalog_description())

        await discovery.list_offers(f"{PROVIDER_URL}/")

        recipients = {request.url.params["recipient"] for request in fake_connector.requests}
        assert recipients == {f"{PROVIDER_URL}/api/ids/data"}

    @pytest.mark.asyncio
    async def test_catalog_without_offers_is_empty(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        fake_connector.describe(None, connector_description("cat-1"))
        fake_connector.describe(CATALOG_URL, {"@type": "ids:ResourceCatalog"})

        assert await discovery.list_offers(PROVIDER_URL) == []

    @pytest.mark.asyncio
    async def test_no_catalog_raises(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        fake_connector.describe(None, connector_description())

        with pytest.raises(EmptyCatalogError) as exc_info:
            await discovery.list_offers(PROVIDER_URL)

        assert exc_info.value.endpoint_url == PROVIDER_URL
        assert len(fake_connector.requests) == 1

    @pytest.mark.asyncio
    async def test_missing_catalog_key_raises(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        fake_connector.describe(None, {"@type": "ids:BaseConnector"})

        with pytest.raises(EmptyCatalogError):
            await discovery.list_offers(PROVIDER_URL)

    @pytest.mark.asyncio
    async def test_offer_without_representation_is_malformed(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        entry = offered_resource("o1", "c1", "a1", "table")
        entry["ids:representation"] = []
        fake_connector.describe(None, connector_description("cat-1"))
        fake_connector.describe(CATALOG_URL, catalog_description(entry))

        with pytest.raises(MalformedDescriptionError) as exc_info:
            await discovery.list_offers(PROVIDER_URL)

        assert exc_info.value.errors

    @pytest.mark.asyncio
    async def test_offer_without_title_is_malformed(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        entry = offered_resource("o1", "c1", "a1", "table")
        del entry["ids:title"]
        fake_connector.describe(None, connector_description("cat-1"))
        fake_connector.describe(CATALOG_URL, catalog_description(entry))

        with pytest.raises(MalformedDescriptionError):
            await discovery.list_offers(PROVIDER_URL)


class TestDescriptions:
    @pytest.mark.asyncio
    async def test_get_description(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        document = connector_description("cat-1")
        fake_connector.describe(None, document)

        assert await discovery.get_description(PROVIDER_URL) == document

    @pytest.mark.asyncio
    async def test_offer_description_element_id(
        self, discovery: CatalogDiscovery, fake_connector: FakeConnector
    ) -> None:
        document = {"@type": "ids:ContractOffer"}
        fake_connector.describe(f"{PROVIDER_URL}/api/contracts/c1", document)

        result = await discovery.get_offer_description(PROVIDER_URL, "c1")

        assert result == document
        request = fake_connector.requests[0]
        assert request.url.params["recipient"] == f"{PROVIDER_URL}/api/ids/data"
        assert request.url.params["elementId"] == f"{PROVIDER_URL}/api/contracts/c1"
