import json
from typing import Callable, Dict

import httpx
import pytest

from dropship_gateway.tenant_directory import TenantDirectory


RAW_STORES = [
    {"Subdomain": "acme-uniforms", "Custom URL": "shop.acmeuniforms.com"},
    {"Subdomain": "riverside-athletics", "Custom URL": "riverside-athletics.mybrightsites.com.example.org"},
    {"Subdomain": "northwind-promo"},
    {"Custom URL": "old.example.com"},
    # remapped onto another store's platform hostname
    {"Subdomain": "remapped-store", "Custom URL": "legacy.mybrightsites.com"},
]

CREDENTIALS = {
    "acme-uniforms": "acme-token",
    "centricity-test-store": "centricity-token",
    "unlisted-store": "unlisted-token",
}


@pytest.fixture
def credentials() -> Dict[str, str]:
    return dict(CREDENTIALS)


@pytest.fixture
def credential_lookup(credentials) -> Callable:
    return credentials.get


@pytest.fixture
def directory(credential_lookup) -> TenantDirectory:
    return TenantDirectory.load(RAW_STORES, credential_lookup)


def product_api_transport(catalog: Dict[str, object], seen=None) -> httpx.MockTransport:
    """
    Fake product API keyed by product id.

    Catalog values:
    - dict/list: returned as a 200 JSON body
    - int: returned as a bare status code
    - str: returned verbatim as a 200 body
    - Exception instance: raised as the transport failure
    """
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        product_id = request.url.path.rsplit("/", 1)[-1]
        entry = catalog.get(product_id, 404)

        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, int):
            return httpx.Response(entry)
        if isinstance(entry, str):
            return httpx.Response(200, content=entry)
        return httpx.Response(200, content=json.dumps(entry))

    return httpx.MockTransport(handler)


@pytest.fixture
def make_transport():
    return product_api_transport
