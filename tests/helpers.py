"""
Sample vCloud documents and mock builders shared by the test modules.
"""
from unittest.mock import Mock


GATEWAY_HREF = "https://vca.example.com/api/admin/edgeGateway/1f2e3d4c"
UPLINK_HREF = "https://x/uplink1"
INTERNAL_NETWORK_HREF = "https://x/internal1"
TASK_HREF = "https://vca.example.com/api/task/9a8b7c6d"


# Services of a gateway that already carries user-managed rules
EXISTING_SERVICES = """
      <GatewayDhcpService>
        <IsEnabled>false</IsEnabled>
      </GatewayDhcpService>
      <FirewallService>
        <IsEnabled>true</IsEnabled>
        <DefaultAction>drop</DefaultAction>
        <LogDefaultAction>false</LogDefaultAction>
        <FirewallRule>
          <Id>1</Id>
          <IsEnabled>true</IsEnabled>
          <MatchOnTranslate>false</MatchOnTranslate>
          <Description>https in</Description>
          <Policy>allow</Policy>
          <Protocols>
            <Tcp>true</Tcp>
          </Protocols>
          <Port>443</Port>
          <DestinationPortRange>443</DestinationPortRange>
          <DestinationIp>203.0.113.10</DestinationIp>
          <SourcePort>-1</SourcePort>
          <SourcePortRange>Any</SourcePortRange>
          <SourceIp>Any</SourceIp>
          <EnableLogging>false</EnableLogging>
        </FirewallRule>
      </FirewallService>
      <NatService>
        <IsEnabled>false</IsEnabled>
        <NatRule>
          <Description>https forward</Description>
          <RuleType>DNAT</RuleType>
          <IsEnabled>true</IsEnabled>
          <Id>65537</Id>
          <GatewayNatRule>
            <Interface href="https://x/uplink1" name="internet" type="application/vnd.vmware.admin.network+xml"/>
            <OriginalIp>203.0.113.10</OriginalIp>
            <OriginalPort>443</OriginalPort>
            <TranslatedIp>10.0.0.20</TranslatedIp>
            <TranslatedPort>443</TranslatedPort>
            <Protocol>tcp</Protocol>
          </GatewayNatRule>
        </NatRule>
      </NatService>
"""

# Services of a freshly provisioned gateway
EMPTY_SERVICES = """
      <FirewallService>
        <IsEnabled>true</IsEnabled>
        <DefaultAction>drop</DefaultAction>
        <LogDefaultAction>false</LogDefaultAction>
      </FirewallService>
      <NatService>
        <IsEnabled>false</IsEnabled>
      </NatService>
"""

TASK_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<Task xmlns="http://www.vmware.com/vcloud/v1.5" href="{TASK_HREF}" id="urn:vcloud:task:9a8b7c6d"
      name="task" status="running" operation="Updating services EdgeGateway gateway"
      operationName="networkConfigureEdgeGatewayServices" startTime="2014-11-20T10:00:00.000Z"
      type="application/vnd.vmware.vcloud.task+xml">
  <Description>Configure edge gateway services</Description>
  <Progress>0</Progress>
</Task>
"""


def gateway_xml(services: str = EXISTING_SERVICES, interfaces: str = None) -> str:
    """Build an EdgeGateway document around the given service configuration."""
    if interfaces is None:
        interfaces = f"""
        <GatewayInterface>
          <Name>default-routed</Name>
          <DisplayName>default-routed</DisplayName>
          <Network href="{INTERNAL_NETWORK_HREF}" name="default-routed" type="application/vnd.vmware.admin.network+xml"/>
          <InterfaceType>internal</InterfaceType>
          <UseForDefaultRoute>false</UseForDefaultRoute>
        </GatewayInterface>
        <GatewayInterface>
          <Name>internet</Name>
          <DisplayName>internet</DisplayName>
          <Network href="{UPLINK_HREF}" name="internet" type="application/vnd.vmware.admin.network+xml"/>
          <InterfaceType>uplink</InterfaceType>
          <UseForDefaultRoute>true</UseForDefaultRoute>
        </GatewayInterface>
"""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<EdgeGateway xmlns="http://www.vmware.com/vcloud/v1.5" href="{GATEWAY_HREF}"
             id="urn:vcloud:gateway:1f2e3d4c" name="gateway" operationKey=""
             type="application/vnd.vmware.admin.edgeGateway+xml">
  <Description>Edge gateway</Description>
  <Configuration>
    <GatewayBackingConfig>compact</GatewayBackingConfig>
    <GatewayInterfaces>{interfaces}
    </GatewayInterfaces>
    <EdgeGatewayServiceConfiguration>{services}
    </EdgeGatewayServiceConfiguration>
    <HaEnabled>false</HaEnabled>
    <UseDefaultRouteForDnsRelay>false</UseDefaultRouteForDnsRelay>
  </Configuration>
</EdgeGateway>
"""


def make_response(body: str, status_code: int = 200, url: str = GATEWAY_HREF) -> Mock:
    """Create a mocked requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.content = body.encode("utf-8")
    response.text = body
    response.url = url
    return response


def submitted(http_client) -> dict:
    """Method, url, body and headers of the last request made."""
    call = http_client.request.call_args
    method, url = call.args[:2]
    return {
        "method": method,
        "url": url,
        "data": call.kwargs.get("data"),
        "headers": call.kwargs.get("headers") or {},
    }
