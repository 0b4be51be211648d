"""
Pytest configuration and fixtures.
"""
import pytest
from unittest.mock import Mock

from edge_gateway.core.config import Settings
from edge_gateway.services.edge_gateway_client import EdgeGatewayConfigClient
from edge_gateway.services.http_client import VCloudHttpClient

from helpers import EXISTING_SERVICES, GATEWAY_HREF, TASK_XML, gateway_xml, make_response


@pytest.fixture
def settings():
    """Settings with the XML trace off."""
    return Settings(XML_DEBUG=False)


@pytest.fixture
def http_client():
    """Mocked transport."""
    return Mock(spec=VCloudHttpClient)


@pytest.fixture
def make_client(http_client, settings):
    """
    Build an EdgeGatewayConfigClient whose transport serves ``gateway_xml``
    on GET and ``TASK_XML`` on POST/PUT.
    """
    def build(services: str = EXISTING_SERVICES, interfaces: str = None, **kwargs):
        def serve(method, url, data=None, headers=None):
            if method == "GET":
                return make_response(gateway_xml(services, interfaces), url=url)
            return make_response(TASK_XML, url=url)

        http_client.request.side_effect = serve
        return EdgeGatewayConfigClient.from_href(http_client, GATEWAY_HREF, settings=settings, **kwargs)

    return build
