"""Client for vCloud edge gateway NAT, firewall and public IP configuration."""
from edge_gateway.core.exceptions import (
    EdgeGatewayError,
    FetchError,
    NotFoundError,
    RefreshError,
    SerializationError,
    SubmissionError,
    TaskDecodeError,
)
from edge_gateway.services.edge_gateway_client import EdgeGatewayConfigClient
from edge_gateway.services.http_client import VCloudHttpClient
from edge_gateway.services.task import AsyncTask

__all__ = [
    "EdgeGatewayConfigClient",
    "VCloudHttpClient",
    "AsyncTask",
    "EdgeGatewayError",
    "FetchError",
    "NotFoundError",
    "RefreshError",
    "SerializationError",
    "SubmissionError",
    "TaskDecodeError",
]
