"""
Structural matching of the NAT and firewall rules that make up a 1:1 mapping.

A 1:1 mapping between an internal and an external address is four rules at
most: an SNAT rule, a DNAT rule, and optionally an inbound and an outbound
"allow any" firewall rule. Those rules carry no identifier we could track, so
they are recognised field by field. Everything here is pure and works on
schema values only.
"""
import logging
from typing import List

from edge_gateway.schemas.reference import Reference
from edge_gateway.schemas.service_config import (
    FIREWALL_ANY,
    NAT_ANY,
    FirewallRule,
    FirewallRuleProtocols,
    GatewayNatRule,
    NatRule,
)

logger = logging.getLogger(__name__)

SNAT = "SNAT"
DNAT = "DNAT"
ALLOW = "allow"


def _interface_href(rule: GatewayNatRule) -> str:
    return rule.interface.href if rule.interface is not None else ""


def is_one_to_one_dnat(rule: NatRule, internal: str, external: str, uplink_href: str) -> bool:
    """DNAT external -> internal, any port, any protocol, on the uplink."""
    body = rule.gateway_nat_rule
    return (
        rule.rule_type == DNAT
        and body is not None
        and body.original_ip == external
        and body.translated_ip == internal
        and body.original_port == NAT_ANY
        and body.translated_port == NAT_ANY
        and body.protocol == NAT_ANY
        and _interface_href(body) == uplink_href
    )


def is_one_to_one_snat(rule: NatRule, internal: str, external: str, uplink_href: str) -> bool:
    """SNAT internal -> external on the uplink."""
    body = rule.gateway_nat_rule
    return (
        rule.rule_type == SNAT
        and body is not None
        and body.original_ip == internal
        and body.translated_ip == external
        and _interface_href(body) == uplink_href
    )


def _is_allow_any(rule: FirewallRule) -> bool:
    return (
        rule.policy == ALLOW
        and rule.protocols is not None
        and rule.protocols.any
        and rule.destination_port_range == FIREWALL_ANY
        and rule.source_port_range == FIREWALL_ANY
    )


def is_inbound_allow_any(rule: FirewallRule, external: str) -> bool:
    """Allow anything from anywhere to the external address."""
    return _is_allow_any(rule) and rule.source_ip == FIREWALL_ANY and rule.destination_ip == external


def is_outbound_allow_any(rule: FirewallRule, internal: str) -> bool:
    """Allow anything from the internal address to anywhere."""
    return _is_allow_any(rule) and rule.source_ip == internal and rule.destination_ip == FIREWALL_ANY


def filter_one_to_one_nat_rules(
    rules: List[NatRule], internal: str, external: str, uplink_href: str
) -> List[NatRule]:
    """Return ``rules`` without the SNAT/DNAT pair of the mapping, order kept."""
    kept = [
        rule for rule in rules
        if not is_one_to_one_dnat(rule, internal, external, uplink_href)
        and not is_one_to_one_snat(rule, internal, external, uplink_href)
    ]
    logger.debug(f"Dropped {len(rules) - len(kept)} NAT rule(s) for {internal} <-> {external}")
    return kept


def filter_one_to_one_firewall_rules(
    rules: List[FirewallRule], internal: str, external: str
) -> List[FirewallRule]:
    """Return ``rules`` without the allow-any rules of the mapping, order kept."""
    kept = [
        rule for rule in rules
        if not is_inbound_allow_any(rule, external)
        and not is_outbound_allow_any(rule, internal)
    ]
    logger.debug(f"Dropped {len(rules) - len(kept)} firewall rule(s) for {internal} <-> {external}")
    return kept


def build_one_to_one_nat_rules(
    internal: str, external: str, description: str, uplink_href: str
) -> List[NatRule]:
    """Build the SNAT and DNAT rules of a mapping, in that order."""
    snat = NatRule(
        description=description,
        rule_type=SNAT,
        is_enabled=True,
        gateway_nat_rule=GatewayNatRule(
            interface=Reference(href=uplink_href),
            original_ip=internal,
            translated_ip=external,
            protocol=NAT_ANY,
        ),
    )
    dnat = NatRule(
        description=description,
        rule_type=DNAT,
        is_enabled=True,
        gateway_nat_rule=GatewayNatRule(
            interface=Reference(href=uplink_href),
            original_ip=external,
            original_port=NAT_ANY,
            translated_ip=internal,
            translated_port=NAT_ANY,
            protocol=NAT_ANY,
        ),
    )
    return [snat, dnat]


def build_allow_any_rule(source_ip: str, destination_ip: str, description: str) -> FirewallRule:
    """Build an enabled, unlogged allow-any rule between two addresses."""
    return FirewallRule(
        description=description,
        is_enabled=True,
        policy=ALLOW,
        protocols=FirewallRuleProtocols(any=True),
        destination_port_range=FIREWALL_ANY,
        destination_ip=destination_ip,
        source_port_range=FIREWALL_ANY,
        source_ip=source_ip,
        enable_logging=False,
    )


def build_inbound_allow_any_rule(external: str, description: str) -> FirewallRule:
    return build_allow_any_rule(FIREWALL_ANY, external, description)


def build_outbound_allow_any_rule(internal: str, description: str) -> FirewallRule:
    return build_allow_any_rule(internal, FIREWALL_ANY, description)
