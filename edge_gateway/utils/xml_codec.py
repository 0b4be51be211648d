"""
XML codec for the vCloud edge gateway documents.

Decoding is namespace-insensitive: every tag is reduced to its local name
before it is looked at. Character data is kept exactly as sent. Services
that are not modelled are carried through as XML with their namespace
prefixes and declarations intact. Encoding produces the exact layout the gateway
endpoints have always been fed:

    <?xml version="1.0" encoding="UTF-8"?>
      <Root xmlns="...">
          <Child>text</Child>
          <Empty></Empty>
      </Root>

i.e. every line is prefixed with two spaces and each nesting level adds four.
"""
import copy
import io
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

from edge_gateway.core.exceptions import DecodeError, SerializationError
from edge_gateway.schemas.gateway import EdgeGateway, GatewayConfiguration, GatewayInterface
from edge_gateway.schemas.ip_allocation import ExternalIpAddressActionList
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
from edge_gateway.schemas.task import Task, TaskError

logger = logging.getLogger(__name__)

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
VCLOUD_NAMESPACE = "http://www.vmware.com/vcloud/v1.5"
_XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

PREFIX = "  "
INDENT = "    "

# Services rendered ahead of FirewallService when they are carried through
_LEADING_SERVICES = ("GatewayDhcpService",)

_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&#34;",
    "'": "&#39;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def escape(value: str) -> str:
    """Escape text or attribute content."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def render(element: ET.Element) -> str:
    """Pretty-print an element tree (without the XML declaration)."""
    lines: List[str] = []
    _render_into(element, 0, lines)
    return "\n".join(lines)


def _render_into(element: ET.Element, depth: int, lines: List[str]) -> None:
    indent = PREFIX + INDENT * depth
    attrs = "".join(f' {name}="{escape(value)}"' for name, value in element.attrib.items())
    children = list(element)
    if not children:
        text = escape(element.text or "")
        lines.append(f"{indent}<{element.tag}{attrs}>{text}</{element.tag}>")
        return
    lines.append(f"{indent}<{element.tag}{attrs}>")
    for child in children:
        _render_into(child, depth + 1, lines)
    lines.append(f"{indent}</{element.tag}>")


def _sub(parent: ET.Element, tag: str, value=None, omit_empty: bool = False) -> Optional[ET.Element]:
    """Append a leaf element; booleans render as true/false."""
    if omit_empty and not value:
        return None
    element = ET.SubElement(parent, tag)
    if isinstance(value, bool):
        element.text = "true" if value else "false"
    elif value is not None:
        element.text = str(value)
    return element


def _reference(parent: ET.Element, tag: str, ref: Reference) -> ET.Element:
    element = ET.SubElement(parent, tag)
    for attr, value in (("href", ref.href), ("id", ref.id), ("type", ref.type), ("name", ref.name)):
        if value:
            element.set(attr, value)
    return element


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _nat_rule_element(parent: ET.Element, rule: NatRule) -> None:
    element = ET.SubElement(parent, "NatRule")
    _sub(element, "Description", rule.description, omit_empty=True)
    _sub(element, "RuleType", rule.rule_type, omit_empty=True)
    _sub(element, "IsEnabled", rule.is_enabled)
    _sub(element, "Id", rule.id, omit_empty=True)
    body = rule.gateway_nat_rule
    if body is not None:
        gnr = ET.SubElement(element, "GatewayNatRule")
        if body.interface is not None:
            _reference(gnr, "Interface", body.interface)
        _sub(gnr, "OriginalIp", body.original_ip)
        _sub(gnr, "OriginalPort", body.original_port, omit_empty=True)
        _sub(gnr, "TranslatedIp", body.translated_ip)
        _sub(gnr, "TranslatedPort", body.translated_port, omit_empty=True)
        _sub(gnr, "Protocol", body.protocol, omit_empty=True)
        _sub(gnr, "IcmpSubType", body.icmp_sub_type, omit_empty=True)


def _nat_service_element(parent: ET.Element, service: NatService) -> None:
    element = ET.SubElement(parent, "NatService")
    _sub(element, "IsEnabled", service.is_enabled)
    _sub(element, "NatType", service.nat_type, omit_empty=True)
    _sub(element, "Policy", service.policy, omit_empty=True)
    for rule in service.nat_rules:
        _nat_rule_element(element, rule)
    _sub(element, "ExternalIp", service.external_ip, omit_empty=True)


def _firewall_rule_element(parent: ET.Element, rule: FirewallRule) -> None:
    element = ET.SubElement(parent, "FirewallRule")
    _sub(element, "Id", rule.id, omit_empty=True)
    _sub(element, "IsEnabled", rule.is_enabled)
    _sub(element, "MatchOnTranslate", rule.match_on_translate)
    _sub(element, "Description", rule.description, omit_empty=True)
    _sub(element, "Policy", rule.policy, omit_empty=True)
    if rule.protocols is not None:
        protocols = ET.SubElement(element, "Protocols")
        _sub(protocols, "Icmp", rule.protocols.icmp, omit_empty=True)
        _sub(protocols, "Any", rule.protocols.any, omit_empty=True)
        _sub(protocols, "Tcp", rule.protocols.tcp, omit_empty=True)
        _sub(protocols, "Udp", rule.protocols.udp, omit_empty=True)
        _sub(protocols, "Other", rule.protocols.other, omit_empty=True)
    _sub(element, "IcmpSubType", rule.icmp_sub_type, omit_empty=True)
    _sub(element, "Port", rule.port, omit_empty=True)
    _sub(element, "DestinationPortRange", rule.destination_port_range)
    _sub(element, "DestinationIp", rule.destination_ip)
    _sub(element, "SourcePort", rule.source_port, omit_empty=True)
    _sub(element, "SourcePortRange", rule.source_port_range, omit_empty=True)
    _sub(element, "SourceIp", rule.source_ip)
    _sub(element, "Direction", rule.direction, omit_empty=True)
    _sub(element, "EnableLogging", rule.enable_logging)


def _firewall_service_element(parent: ET.Element, service: FirewallService) -> None:
    element = ET.SubElement(parent, "FirewallService")
    _sub(element, "IsEnabled", service.is_enabled)
    _sub(element, "DefaultAction", service.default_action, omit_empty=True)
    _sub(element, "LogDefaultAction", service.log_default_action)
    for rule in service.firewall_rules:
        _firewall_rule_element(element, rule)


def _raw_service_element(parent: ET.Element, raw: RawServiceElement) -> None:
    try:
        element, prefixes = _read(raw.xml)
    except ET.ParseError as e:
        raise SerializationError(f"Carried-through {raw.tag} is not valid XML: {e}") from e
    parent.append(_qualified_copy(element, prefixes))


def service_configuration_element(config: ServiceConfiguration) -> ET.Element:
    """Build the EdgeGatewayServiceConfiguration element tree."""
    root = ET.Element("EdgeGatewayServiceConfiguration", {"xmlns": VCLOUD_NAMESPACE})
    leading = [s for s in config.other_services if s.tag in _LEADING_SERVICES]
    trailing = [s for s in config.other_services if s.tag not in _LEADING_SERVICES]
    for raw in leading:
        _raw_service_element(root, raw)
    if config.firewall_service is not None:
        _firewall_service_element(root, config.firewall_service)
    if config.nat_service is not None:
        _nat_service_element(root, config.nat_service)
    for raw in trailing:
        _raw_service_element(root, raw)
    return root


def encode_service_configuration(config: ServiceConfiguration) -> str:
    """Serialize a service configuration (without the XML declaration)."""
    return render(service_configuration_element(config))


def encode_ip_action_list(action_list: ExternalIpAddressActionList) -> str:
    """Serialize an ExternalIpAddressActionList (without the XML declaration)."""
    attrs = {"xmlns": action_list.xmlns} if action_list.xmlns else {}
    root = ET.Element("ExternalIpAddressActionList", attrs)
    if action_list.allocation is not None:
        allocation = ET.SubElement(root, "Allocation")
        _sub(allocation, "ExternalNetworkName", action_list.allocation.external_network_name, omit_empty=True)
        _sub(allocation, "ExternalNetworkRef", action_list.allocation.external_network_ref, omit_empty=True)
        _sub(
            allocation,
            "NumberOfExternalIpAddressesToAllocate",
            action_list.allocation.number_of_external_ip_addresses_to_allocate,
            omit_empty=True,
        )
    if action_list.deallocation is not None:
        deallocation = ET.SubElement(root, "Deallocation")
        _sub(deallocation, "ExternalNetworkName", action_list.deallocation.external_network_name, omit_empty=True)
        _sub(deallocation, "ExternalNetworkRef", action_list.deallocation.external_network_ref, omit_empty=True)
        _sub(deallocation, "ExternalIpAddress", action_list.deallocation.external_ip_address, omit_empty=True)
    return render(root)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _read(body) -> Tuple[ET.Element, Dict[str, str]]:
    """Parse ``body``, also returning the prefix each namespace URI was declared with."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    prefixes: Dict[str, str] = {}
    events = ET.iterparse(io.BytesIO(body), events=("start-ns",))
    for _, (prefix, uri) in events:
        prefixes.setdefault(uri, prefix)
    return events.root, prefixes


def _qualified_copy(element: ET.Element, prefixes: Dict[str, str]) -> ET.Element:
    """
    Copy of a carried-through element with prefixed names and no layout whitespace.

    Names in the vCloud namespace lose it, since the enclosing document
    declares it as the default. Any other namespace keeps the prefix it was
    declared with, and its declaration moves onto the copied root.
    """
    element = copy.deepcopy(element)
    prefixes = {uri: prefix for uri, prefix in prefixes.items() if prefix}
    declarations: Dict[str, str] = {}

    def qualify(name: str) -> str:
        if not name.startswith("{"):
            return name
        uri, local = name[1:].split("}", 1)
        if uri == VCLOUD_NAMESPACE:
            return local
        if uri == _XML_NAMESPACE:
            return f"xml:{local}"
        prefix = prefixes.setdefault(uri, f"ns{len(prefixes)}")
        declarations[f"xmlns:{prefix}"] = uri
        return f"{prefix}:{local}"

    for node in element.iter():
        node.tag = qualify(node.tag)
        node.tail = None
        if node.text is not None and not node.text.strip():
            node.text = None
        attrib = {qualify(name): value for name, value in node.attrib.items()}
        node.attrib.clear()
        node.attrib.update(attrib)

    attrib = dict(declarations)
    attrib.update(element.attrib)
    element.attrib.clear()
    element.attrib.update(attrib)
    return element


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for node in element:
        if _local(node.tag) == name:
            return node
    return None


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [node for node in element if _local(node.tag) == name]


def _text(element: ET.Element, name: str) -> str:
    """Character data of the ``name`` child, exactly as sent."""
    node = _child(element, name)
    if node is None or node.text is None:
        return ""
    return node.text


def _bool(element: ET.Element, name: str) -> bool:
    return _text(element, name).strip().lower() in ("true", "1")


def _int(element: ET.Element, name: str) -> int:
    value = _text(element, name).strip()
    if not value:
        return 0
    try:
        return int(value)
    except ValueError as e:
        raise DecodeError(f"<{name}> is not an integer: {value!r}") from e


def _decode_reference(element: Optional[ET.Element]) -> Optional[Reference]:
    if element is None:
        return None
    return Reference(
        href=element.get("href", ""),
        id=element.get("id", ""),
        type=element.get("type", ""),
        name=element.get("name", ""),
    )


def _parse(body, root_name: str) -> Tuple[ET.Element, Dict[str, str]]:
    try:
        root, prefixes = _read(body)
    except ET.ParseError as e:
        raise DecodeError(f"Malformed XML, expected <{root_name}>: {e}") from e
    if _local(root.tag) != root_name:
        raise DecodeError(f"Expected <{root_name}> document, got <{_local(root.tag)}>")
    return root, prefixes


def _decode_nat_rule(element: ET.Element) -> NatRule:
    body = _child(element, "GatewayNatRule")
    gateway_nat_rule = None
    if body is not None:
        gateway_nat_rule = GatewayNatRule(
            interface=_decode_reference(_child(body, "Interface")),
            original_ip=_text(body, "OriginalIp"),
            original_port=_text(body, "OriginalPort"),
            translated_ip=_text(body, "TranslatedIp"),
            translated_port=_text(body, "TranslatedPort"),
            protocol=_text(body, "Protocol"),
            icmp_sub_type=_text(body, "IcmpSubType"),
        )
    return NatRule(
        description=_text(element, "Description"),
        rule_type=_text(element, "RuleType"),
        is_enabled=_bool(element, "IsEnabled"),
        id=_text(element, "Id"),
        gateway_nat_rule=gateway_nat_rule,
    )


def _decode_nat_service(element: ET.Element) -> NatService:
    return NatService(
        is_enabled=_bool(element, "IsEnabled"),
        nat_type=_text(element, "NatType"),
        policy=_text(element, "Policy"),
        nat_rules=[_decode_nat_rule(node) for node in _children(element, "NatRule")],
        external_ip=_text(element, "ExternalIp"),
    )


def _decode_firewall_rule(element: ET.Element) -> FirewallRule:
    protocols_element = _child(element, "Protocols")
    protocols = None
    if protocols_element is not None:
        protocols = FirewallRuleProtocols(
            icmp=_bool(protocols_element, "Icmp"),
            any=_bool(protocols_element, "Any"),
            tcp=_bool(protocols_element, "Tcp"),
            udp=_bool(protocols_element, "Udp"),
            other=_text(protocols_element, "Other"),
        )
    return FirewallRule(
        id=_text(element, "Id"),
        is_enabled=_bool(element, "IsEnabled"),
        match_on_translate=_bool(element, "MatchOnTranslate"),
        description=_text(element, "Description"),
        policy=_text(element, "Policy"),
        protocols=protocols,
        icmp_sub_type=_text(element, "IcmpSubType"),
        port=_int(element, "Port"),
        destination_port_range=_text(element, "DestinationPortRange"),
        destination_ip=_text(element, "DestinationIp"),
        source_port=_int(element, "SourcePort"),
        source_port_range=_text(element, "SourcePortRange"),
        source_ip=_text(element, "SourceIp"),
        direction=_text(element, "Direction"),
        enable_logging=_bool(element, "EnableLogging"),
    )


def _decode_firewall_service(element: ET.Element) -> FirewallService:
    return FirewallService(
        is_enabled=_bool(element, "IsEnabled"),
        default_action=_text(element, "DefaultAction"),
        log_default_action=_bool(element, "LogDefaultAction"),
        firewall_rules=[_decode_firewall_rule(node) for node in _children(element, "FirewallRule")],
    )


def _decode_service_configuration(element: ET.Element, prefixes: Dict[str, str]) -> ServiceConfiguration:
    config = ServiceConfiguration()
    for node in element:
        name = _local(node.tag)
        if name == "FirewallService":
            config.firewall_service = _decode_firewall_service(node)
        elif name == "NatService":
            config.nat_service = _decode_nat_service(node)
        else:
            logger.debug(f"Carrying {name} through unmodified")
            raw = _qualified_copy(node, prefixes)
            config.other_services.append(
                RawServiceElement(tag=name, xml=ET.tostring(raw, encoding="unicode"))
            )
    return config


def decode_service_configuration(body) -> ServiceConfiguration:
    """Decode an EdgeGatewayServiceConfiguration document."""
    return _decode_service_configuration(*_parse(body, "EdgeGatewayServiceConfiguration"))


def _decode_gateway_interface(element: ET.Element) -> GatewayInterface:
    return GatewayInterface(
        name=_text(element, "Name"),
        display_name=_text(element, "DisplayName"),
        network=_decode_reference(_child(element, "Network")),
        interface_type=_text(element, "InterfaceType"),
        use_for_default_route=_bool(element, "UseForDefaultRoute"),
    )


def decode_edge_gateway(body) -> EdgeGateway:
    """Decode an EdgeGateway document into a brand new EdgeGateway."""
    root, prefixes = _parse(body, "EdgeGateway")
    configuration = None
    config_element = _child(root, "Configuration")
    if config_element is not None:
        interfaces_element = _child(config_element, "GatewayInterfaces")
        interfaces = []
        if interfaces_element is not None:
            interfaces = [
                _decode_gateway_interface(node)
                for node in _children(interfaces_element, "GatewayInterface")
            ]
        service_element = _child(config_element, "EdgeGatewayServiceConfiguration")
        configuration = GatewayConfiguration(
            gateway_backing_config=_text(config_element, "GatewayBackingConfig"),
            gateway_interfaces=interfaces,
            service_configuration=(
                _decode_service_configuration(service_element, prefixes)
                if service_element is not None else None
            ),
            ha_enabled=_bool(config_element, "HaEnabled"),
            use_default_route_for_dns_relay=_bool(config_element, "UseDefaultRouteForDnsRelay"),
        )
    return EdgeGateway(
        href=root.get("href", ""),
        type=root.get("type", ""),
        id=root.get("id", ""),
        name=root.get("name", ""),
        operation_key=root.get("operationKey", ""),
        description=_text(root, "Description"),
        configuration=configuration,
    )


def decode_task(body) -> Task:
    """Decode a Task document."""
    root, _ = _parse(body, "Task")
    error = None
    error_element = _child(root, "Error")
    if error_element is not None:
        error = TaskError(
            message=error_element.get("message", ""),
            major_error_code=error_element.get("majorErrorCode", ""),
            minor_error_code=error_element.get("minorErrorCode", ""),
        )
    progress_text = _text(root, "Progress").strip()
    return Task(
        href=root.get("href", ""),
        type=root.get("type", ""),
        id=root.get("id", ""),
        name=root.get("name", ""),
        operation_key=root.get("operationKey", ""),
        status=root.get("status", ""),
        operation=root.get("operation", ""),
        operation_name=root.get("operationName", ""),
        start_time=root.get("startTime", ""),
        end_time=root.get("endTime", ""),
        expiry_time=root.get("expiryTime", ""),
        description=_text(root, "Description"),
        error=error,
        progress=_int(root, "Progress") if progress_text else None,
    )

