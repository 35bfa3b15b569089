"""Unit tests for artifact retrieval and sink transfers."""

from __future__ import annotations

import httpx
import pytest

from dsc_controller.connectors.dsc.client import DSCClient
from dsc_controller.connectors.dsc.errors import MalformedDescriptionError, NoRouteConfiguredError
from dsc_controller.connectors.dsc.models import ArtifactReference
from dsc_controller.connectors.dsc.retrieval import ArtifactRetrieval, SinkRoute
from tests.tools.fake_connector import CONSUMER_URL, FakeConnector, artifacts_page

ROUTE_URL = f"{CONSUMER_URL}/api/routes/route-1"


@pytest.fixture
def retrieval(dsc_client: DSCClient) -> ArtifactRetrieval:
    return ArtifactRetrieval(dsc_client)


class TestSinkRoute:
    def test_defaults_unprovisioned(self) -> None:
        assert not SinkRoute().is_provisioned

    def test_empty_route_id_unprovisioned(self) -> None:
        assert not SinkRoute(route_id="").is_provisioned

    def test_provisioned(self) -> None:
        assert SinkRoute(route_id=ROUTE_URL).is_provisioned


class TestAgreementArtifacts:
    @pytest.mark.asyncio
    async def test_lists_in_connector_order(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        fake_connector.on(
            "GET",
            "/api/agreements/ag-1/artifacts",
            httpx.Response(
                200,
                json=artifacts_page(
                    f"{CONSUMER_URL}/api/artifacts/a2", f"{CONSUMER_URL}/api/artifacts/a1"
                ),
            ),
        )

        artifacts = await retrieval.agreement_artifacts("ag-1")

        assert artifacts == [
            ArtifactReference(url=f"{CONSUMER_URL}/api/artifacts/a2"),
            ArtifactReference(url=f"{CONSUMER_URL}/api/artifacts/a1"),
        ]

    @pytest.mark.asyncio
    async def test_missing_embedded_is_malformed(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        fake_connector.on(
            "GET", "/api/agreements/ag-1/artifacts", httpx.Response(200, json={"_links": {}})
        )

        with pytest.raises(MalformedDescriptionError):
            await retrieval.agreement_artifacts("ag-1")


class TestFetch:
    @pytest.mark.asyncio
    async def test_fetch_by_artifact_url(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        fake_connector.on("GET", "/api/artifacts/a1/data", httpx.Response(200, content=b"rows"))

        result = await retrieval.fetch(f"{CONSUMER_URL}/api/artifacts/a1")

        assert result == b"rows"
        assert dict(fake_connector.requests[0].url.params) == {}

    @pytest.mark.asyncio
    async def test_fetch_with_download_and_routes(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        fake_connector.on("GET", "/api/artifacts/a1/data", httpx.Response(200, content=b""))

        await retrieval.fetch(f"{CONSUMER_URL}/api/artifacts/a1", True, [ROUTE_URL])

        params = fake_connector.requests[0].url.params
        assert params["download"] == "true"
        assert params.get_list("routeIds") == [ROUTE_URL]


class TestTransferForAgreement:
    @pytest.mark.asyncio
    async def test_no_sink_raises(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        with pytest.raises(NoRouteConfiguredError) as exc_info:
            await retrieval.transfer_for_agreement("ag-1", None)

        assert exc_info.value.contract_id == "ag-1"
        assert fake_connector.requests == []

    @pytest.mark.asyncio
    async def test_unprovisioned_sink_raises(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        with pytest.raises(NoRouteConfiguredError):
            await retrieval.transfer_for_agreement("ag-1", SinkRoute())

        assert fake_connector.requests == []

    @pytest.mark.asyncio
    async def test_first_artifact_forwarded(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        fake_connector.on(
            "GET",
            "/api/agreements/ag-1/artifacts",
            httpx.Response(
                200,
                json=artifacts_page(
                    f"{CONSUMER_URL}/api/artifacts/a1", f"{CONSUMER_URL}/api/artifacts/a2"
                ),
            ),
        )
        fake_connector.on("GET", "/api/artifacts/a1/data", httpx.Response(200, content=b"ok"))

        result = await retrieval.transfer_for_agreement("ag-1", SinkRoute(route_id=ROUTE_URL))

        assert result == b"ok"
        assert fake_connector.paths() == [
            "/api/agreements/ag-1/artifacts",
            "/api/artifacts/a1/data",
        ]
        params = fake_connector.requests[-1].url.params
        assert params["download"] == "true"
        assert params.get_list("routeIds") == [ROUTE_URL]

    @pytest.mark.asyncio
    async def test_agreement_without_artifacts(
        self, retrieval: ArtifactRetrieval, fake_connector: FakeConnector
    ) -> None:
        fake_connector.on(
            "GET", "/api/agreements/ag-1/artifacts", httpx.Response(200, json=artifacts_page())
        )

        with pytest.raises(MalformedDescriptionError):
            await retrieval.transfer_for_agreement("ag-1", SinkRoute(route_id=ROUTE_URL))
