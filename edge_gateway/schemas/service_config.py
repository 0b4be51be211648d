"""Schemas for the edge gateway service configuration document."""
from typing import List, Optional
from pydantic import BaseModel, Field

from edge_gateway.schemas.reference import Reference


# Wildcards used by the vCloud NAT and firewall services
NAT_ANY = "any"
FIREWALL_ANY = "Any"


class GatewayNatRule(BaseModel):
    """Body of a NAT rule: what gets translated into what, and where."""
    interface: Optional[Reference] = None
    original_ip: str = ""
    original_port: str = ""
    translated_ip: str = ""
    translated_port: str = ""
    protocol: str = ""
    icmp_sub_type: str = ""


class NatRule(BaseModel):
    """A single SNAT or DNAT rule."""
    description: str = ""
    rule_type: str = ""  # SNAT / DNAT
    is_enabled: bool = False
    id: str = ""
    gateway_nat_rule: Optional[GatewayNatRule] = None


class NatService(BaseModel):
    """NAT service of an edge gateway."""
    is_enabled: bool = False
    nat_type: str = ""
    policy: str = ""
    nat_rules: List[NatRule] = Field(default_factory=list)
    external_ip: str = ""


class FirewallRuleProtocols(BaseModel):
    """Protocols a firewall rule matches on."""
    icmp: bool = False
    any: bool = False
    tcp: bool = False
    udp: bool = False
    other: str = ""


class FirewallRule(BaseModel):
    """A single firewall rule."""
    id: str = ""
    is_enabled: bool = False
    match_on_translate: bool = False
    description: str = ""
    policy: str = ""  # allow / drop
    protocols: Optional[FirewallRuleProtocols] = None
    icmp_sub_type: str = ""
    port: int = 0
    destination_port_range: str = ""
    destination_ip: str = ""
    source_port: int = 0
    source_port_range: str = ""
    source_ip: str = ""
    direction: str = ""
    enable_logging: bool = False


class FirewallService(BaseModel):
    """Firewall service of an edge gateway."""
    is_enabled: bool = False
    default_action: str = ""
    log_default_action: bool = False
    firewall_rules: List[FirewallRule] = Field(default_factory=list)


class RawServiceElement(BaseModel):
    """A service this client does not model (DHCP, VPN, routing...), kept as XML."""
    tag: str
    xml: str


class ServiceConfiguration(BaseModel):
    """EdgeGatewayServiceConfiguration document."""
    firewall_service: Optional[FirewallService] = None
    nat_service: Optional[NatService] = None
    other_services: List[RawServiceElement] = Field(default_factory=list)
