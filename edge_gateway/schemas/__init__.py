"""Document schemas."""
from edge_gateway.schemas.reference import Reference
from edge_gateway.schemas.service_config import (
    FirewallRule,
    FirewallRuleProtocols,
    FirewallService,
    GatewayNatRule,
    NatRule,
    NatService,
    RawServiceElement,
    ServiceConfiguration,
)
from edge_gateway.schemas.gateway import EdgeGateway, GatewayConfiguration, GatewayInterface
from edge_gateway.schemas.ip_allocation import Allocation, Deallocation, ExternalIpAddressActionList
from edge_gateway.schemas.task import Task, TaskError

__all__ = [
    "Reference",
    "FirewallRule",
    "FirewallRuleProtocols",
    "FirewallService",
    "GatewayNatRule",
    "NatRule",
    "NatService",
    "RawServiceElement",
    "ServiceConfiguration",
    "EdgeGateway",
    "GatewayConfiguration",
    "GatewayInterface",
    "Allocation",
    "Deallocation",
    "ExternalIpAddressActionList",
    "Task",
    "TaskError",
]
