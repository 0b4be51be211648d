"""Schemas for the edge gateway resource."""
from typing import List, Optional
from pydantic import BaseModel, Field

from edge_gateway.schemas.reference import Reference
from edge_gateway.schemas.service_config import ServiceConfiguration


UPLINK_INTERFACE_TYPE = "uplink"


class GatewayInterface(BaseModel):
    """An interface of the edge gateway, attached to one network."""
    name: str = ""
    display_name: str = ""
    network: Optional[Reference] = None
    interface_type: str = ""  # uplink / internal
    use_for_default_route: bool = False

    @property
    def is_uplink(self) -> bool:
        return self.interface_type == UPLINK_INTERFACE_TYPE


class GatewayConfiguration(BaseModel):
    """Configuration section of an edge gateway."""
    gateway_backing_config: str = ""
    gateway_interfaces: List[GatewayInterface] = Field(default_factory=list)
    service_configuration: Optional[ServiceConfiguration] = None
    ha_enabled: bool = False
    use_default_route_for_dns_relay: bool = False


class EdgeGateway(BaseModel):
    """EdgeGateway resource as returned by GET on its href."""
    href: str = ""
    type: str = ""
    id: str = ""
    name: str = ""
    operation_key: str = ""
    description: str = ""
    configuration: Optional[GatewayConfiguration] = None
