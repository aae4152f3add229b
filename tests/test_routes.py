import asyncio
import json
from urllib.parse import quote

import httpx
import pytest
from fastapi.testclient import TestClient

from dropship_gateway.main import create_app
from dropship_gateway.vendor_client import build_http_client


CATALOG = {
    "1001": {"vendors": [{"name": "Acme"}]},
    "1002": {"vendors": [{"name": "Visions"}, {"name": "Bolt"}]},
    "1003": {"vendors": [{"name": "visions"}]},
    "2001": httpx.ConnectError("unreachable"),
    "2002": 404,
}


@pytest.fixture
def seen():
    return []


@pytest.fixture
def http_client(make_transport, seen):
    http_client = build_http_client(transport=make_transport(CATALOG, seen))
    yield http_client
    asyncio.run(http_client.aclose())


@pytest.fixture
def app(directory, credential_lookup, http_client):
    return create_app(
        directory=directory,
        credential_lookup=credential_lookup,
        http_client=http_client,
        static_dir=None,
    )


@pytest.fixture
def client(app):
    with TestClient(app, base_url="http://shop.acmeuniforms.com") as client:
        yield client


def check(client, order, method="GET"):
    return client.request(method, "/api/check-order-dropship", json=order)


class TestCheckOrderDropship:

    def test_body_order_with_dropship_vendor(self, client):
        response = check(client, {"line_items": [{"id": "1001"}, {"id": "1002"}]})

        assert response.status_code == 200
        assert response.json() == {
            "vendorNames": ["Acme", "Visions", "Bolt"],
            "orderContainsDropshipVendors": True,
        }

    def test_case_mismatch_is_not_dropship(self, client):
        response = check(client, {"line_items": [{"id": "1001"}, {"id": "1003"}]})

        assert response.json() == {
            "vendorNames": ["Acme", "visions"],
            "orderContainsDropshipVendors": False,
        }

    def test_post_is_accepted(self, client):
        response = check(client, {"line_items": [{"id": "1002"}]}, method="POST")

        assert response.status_code == 200
        assert response.json()["orderContainsDropshipVendors"] is True

    def test_legacy_query_parameter(self, client):
        order = quote(json.dumps({"line_items": [{"id": "1002"}]}))

        response = client.get(f"/api/check-order-dropship?order_object={order}")

        assert response.status_code == 200
        assert response.json()["vendorNames"] == ["Visions", "Bolt"]

    def test_origin_product_id_is_accepted(self, client, seen):
        response = check(client, {"line_items": [{"origin_product_id": 1001}]})

        assert response.json()["vendorNames"] == ["Acme"]
        assert seen[0].url.path.endswith("/products/1001")

    def test_failed_lookups_are_skipped(self, client):
        order = {"line_items": [{"id": "2001"}, {"id": "1001"}, {"id": "2002"}]}

        response = check(client, order)

        assert response.status_code == 200
        assert response.json() == {"vendorNames": ["Acme"], "orderContainsDropshipVendors": False}

    def test_uses_store_resolved_from_hostname(self, client, seen):
        check(client, {"line_items": [{"id": "1001"}]})

        assert seen[0].url.host == "acme-uniforms.mybrightsites.com"
        assert seen[0].url.params["token"] == "acme-token"

    def test_localhost_uses_default_store(self, app, seen):
        with TestClient(app, base_url="http://localhost:3000") as client:
            check(client, {"line_items": [{"id": "1001"}]})

        assert seen[0].url.host == "centricity-test-store.mybrightsites.com"
        assert seen[0].url.params["token"] == "centricity-token"

    @pytest.mark.parametrize("order", [
        {"line_items": []},
        {"line_items": "1001"},
        {"line_items": [{"sku": "x"}]},
        {},
        [],
        None,
    ])
    def test_malformed_order_returns_400(self, client, seen, order):
        response = check(client, order)

        assert response.status_code == 400
        assert "error" in response.json()
        assert seen == []

    def test_missing_order_returns_400(self, client, seen):
        response = client.get("/api/check-order-dropship")

        assert response.status_code == 400
        assert "error" in response.json()
        assert seen == []

    def test_line_item_without_identifier_is_named_in_error(self, client, seen):
        response = check(client, {"line_items": [{"id": "1002"}, {"sku": "gift-card"}]})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid order_object. line_items[1] needs an 'id' or 'origin_product_id'."
        }
        assert seen == []

    def test_query_parameter_wins_over_body(self, client, seen):
        order = quote(json.dumps({"line_items": [{"id": "1002"}]}))

        response = client.request(
            "GET",
            f"/api/check-order-dropship?order_object={order}",
            json={"line_items": [{"id": "1001"}]},
        )

        assert response.json()["vendorNames"] == ["Visions", "Bolt"]
        assert [request.url.path.rsplit("/", 1)[-1] for request in seen] == ["1002"]

    def test_unparsable_query_parameter_returns_400(self, client):
        response = client.get("/api/check-order-dropship?order_object=%7Bnot-json")

        assert response.status_code == 400
        assert "query parameter" in response.json()["error"]

    def test_unexpected_failure_returns_500(self, app, client):
        class BrokenClassifier:
            async def classify(self, order, tenant_id, api_key):
                raise RuntimeError("secret detail")

        app.state.classifier = BrokenClassifier()

        response = check(client, {"line_items": [{"id": "1001"}]})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}


class TestOriginGuard:

    def test_unknown_origin_is_rejected(self, client, seen):
        response = client.request(
            "GET",
            "/api/check-order-dropship",
            json={"line_items": [{"id": "1001"}]},
            headers={"Origin": "https://evil.example.com"},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Not allowed by CORS"}
        assert seen == []

    def test_store_origin_gets_cors_headers(self, client):
        origin = "https://acme-uniforms.mybrightsites.com"

        response = client.request(
            "GET",
            "/api/check-order-dropship",
            json={"line_items": [{"id": "1001"}]},
            headers={"Origin": origin},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin

    def test_preflight_from_store_origin(self, client):
        response = client.options(
            "/api/check-order-dropship",
            headers={
                "Origin": "https://acme-uniforms.mybrightsites.com",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200


class TestAuxiliaryEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["tenants_loaded"] == 5

    def test_tenant_info_for_custom_hostname(self, client):
        response = client.get("/tenant/info")

        assert response.json() == {
            "tenant_id": "acme-uniforms",
            "known_tenant": True,
            "has_custom_hostname": True,
        }
        assert "acme-token" not in response.text

    def test_tenant_info_for_unlisted_store(self, app):
        with TestClient(app, base_url="http://brand-new.mybrightsites.com") as client:
            response = client.get("/tenant/info")

        assert response.json() == {
            "tenant_id": "brand-new",
            "known_tenant": False,
            "has_custom_hostname": False,
        }

    def test_root_info(self, client):
        assert client.get("/").json()["name"] == "Dropship Order Gateway"

    def test_static_frontend_is_served(self, directory, credential_lookup, tmp_path):
        (tmp_path / "index.html").write_text("<h1>Dropship checker</h1>")
        app = create_app(directory=directory, credential_lookup=credential_lookup, static_dir=str(tmp_path))

        with TestClient(app) as client:
            response = client.get("/")

        assert response.status_code == 200
        assert "Dropship checker" in response.text
