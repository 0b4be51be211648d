"""
Client for the service configuration of a vCloud edge gateway.

Every mutating operation is one read-modify-write cycle: the gateway is
fetched again, the relevant part of its service configuration is rewritten,
and the result is submitted to one of the gateway's action endpoints. The
remote side answers with a Task document, returned as an ``AsyncTask``.
"""
import logging
import threading
from typing import Callable, Optional
from urllib.parse import urlsplit, urlunsplit

from edge_gateway.core.config import Settings, settings as default_settings
from edge_gateway.core.exceptions import (
    DecodeError,
    HttpStatusError,
    NotFoundError,
    RefreshError,
    SerializationError,
    SubmissionError,
    TaskDecodeError,
    TransportError,
)
from edge_gateway.schemas.gateway import EdgeGateway, GatewayConfiguration
from edge_gateway.schemas.ip_allocation import Allocation, Deallocation, ExternalIpAddressActionList
from edge_gateway.schemas.reference import Reference
from edge_gateway.schemas.service_config import FirewallService, NatService, ServiceConfiguration
from edge_gateway.services.http_client import VCloudHttpClient, check_response
from edge_gateway.services.task import AsyncTask
from edge_gateway.utils import rule_matching
from edge_gateway.utils.xml_codec import (
    XML_HEADER,
    decode_edge_gateway,
    decode_task,
    encode_ip_action_list,
    encode_service_configuration,
)

logger = logging.getLogger(__name__)

CONFIGURE_SERVICES_PATH = "/action/configureServices"
MANAGE_EXTERNAL_IPS_PATH = "/action/manageExternalIpAddresses"

SERVICE_CONFIGURATION_CONTENT_TYPE = "application/vnd.vmware.admin.edgeGatewayServiceConfiguration+xml"
IP_ALLOCATION_CONTENT_TYPE = "application/vnd.vmware.vchs.edgeGatewayIpAllocation.list+xml"
IP_ALLOCATION_ACCEPT = "application/xml;version=5.7"


def _log_trace(document: str) -> None:
    logger.info(document)


class EdgeGatewayConfigClient:
    """
    Read and rewrite the NAT, firewall and public IP setup of one edge gateway.

    The client owns its ``gateway`` snapshot exclusively. ``refresh()`` throws
    the previous snapshot away, so do not keep references to its
    sub-documents across calls. Operations on one client are serialized;
    two clients on the same gateway still race (last submit wins).
    """

    def __init__(
        self,
        http_client: VCloudHttpClient,
        gateway: Optional[EdgeGateway] = None,
        trace: Optional[Callable[[str], None]] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the client.

        Args:
            http_client: Transport used for every request
            gateway: Gateway snapshot, at least carrying its ``href``
            trace: Called with every outbound document before submission.
                Defaults to an INFO log line when ``XML_DEBUG`` is set.
            settings: Settings to use (defaults to the global settings)
        """
        settings = settings or default_settings
        self.http_client = http_client
        self.gateway = gateway or EdgeGateway()
        if trace is None and settings.XML_DEBUG:
            trace = _log_trace
        self.trace = trace
        self._lock = threading.RLock()

    @classmethod
    def from_href(cls, http_client: VCloudHttpClient, href: str, **kwargs) -> "EdgeGatewayConfigClient":
        """Create a client for the gateway at ``href`` (nothing is fetched yet)."""
        return cls(http_client, gateway=EdgeGateway(href=href), **kwargs)

    # -- Reading -----------------------------------------------------------

    def refresh(self) -> EdgeGateway:
        """
        Fetch the gateway again and replace the in-memory snapshot with it.

        Returns:
            The new snapshot

        Raises:
            RefreshError: If the gateway has no href, or the fetch or decode fails
        """
        href = self.gateway.href if self.gateway is not None else ""
        if not href:
            raise RefreshError("cannot refresh, edge gateway href is not set")

        with self._lock:
            try:
                response = check_response(self.http_client.request("GET", href))
            except (TransportError, HttpStatusError) as e:
                logger.error(f"Error retrieving edge gateway {href}: {e}", exc_info=True)
                raise RefreshError(f"error retrieving edge gateway {href}: {e}") from e

            try:
                # Decode into a new document, never into the old one
                self.gateway = decode_edge_gateway(response.content)
            except DecodeError as e:
                logger.error(f"Error decoding edge gateway {href}: {e}", exc_info=True)
                raise RefreshError(f"error decoding edge gateway response: {e}") from e

            if not self.gateway.href:
                self.gateway.href = href
            logger.debug(f"Refreshed edge gateway {href}")
            return self.gateway

    def get_service_configuration(self) -> ServiceConfiguration:
        """Refresh and return a copy of the current service configuration."""
        with self._lock:
            self.refresh()
            return self._service_configuration().model_copy(deep=True)

    def uplink_interface_href(self) -> str:
        """
        Network href of the uplink interface of the current snapshot.

        Raises:
            NotFoundError: If no interface is tagged as uplink
        """
        uplinks = [
            gateway_interface
            for gateway_interface in self._configuration().gateway_interfaces
            if gateway_interface.is_uplink and gateway_interface.network is not None
        ]
        if not uplinks:
            raise NotFoundError(f"edge gateway {self.gateway.href} has no uplink interface")
        if len(uplinks) > 1:
            logger.warning(
                f"Edge gateway {self.gateway.href} has {len(uplinks)} uplink interfaces, "
                f"using {uplinks[0].name!r}"
            )
        return uplinks[0].network.href

    def find_network(self, network_name: str) -> Reference:
        """
        Network reference of the gateway interface called ``network_name``.

        Raises:
            NotFoundError: If no interface has that name, or it has no network
        """
        for gateway_interface in self._configuration().gateway_interfaces:
            if gateway_interface.name == network_name:
                if gateway_interface.network is None:
                    break
                return gateway_interface.network
        raise NotFoundError(
            f"couldn't find network {network_name!r} on edge gateway {self.gateway.href}"
        )

    # -- 1:1 mappings ------------------------------------------------------

    def remove_one_to_one_mapping(self, internal: str, external: str) -> AsyncTask:
        """
        Remove the NAT and firewall rules of a 1:1 mapping.

        Only the SNAT/DNAT pair and the allow-any firewall rules this client
        creates for the mapping are removed. Every other rule is kept as is,
        in its original order. The NAT service is always left enabled.

        Args:
            internal: Internal (organization network) address
            external: External (public) address

        Returns:
            AsyncTask of the reconfiguration
        """
        if not internal or not external:
            raise ValueError("Both internal and external addresses are required")

        with self._lock:
            self.refresh()
            uplink_href = self.uplink_interface_href()
            config = self._service_configuration()

            current_nat = config.nat_service or NatService()
            config.nat_service = NatService(
                is_enabled=True,
                nat_type=current_nat.nat_type,
                policy=current_nat.policy,
                nat_rules=rule_matching.filter_one_to_one_nat_rules(
                    current_nat.nat_rules, internal, external, uplink_href
                ),
                external_ip=current_nat.external_ip,
            )

            current_firewall = config.firewall_service
            if current_firewall is not None:
                config.firewall_service = FirewallService(
                    is_enabled=current_firewall.is_enabled,
                    default_action=current_firewall.default_action,
                    log_default_action=current_firewall.log_default_action,
                    firewall_rules=rule_matching.filter_one_to_one_firewall_rules(
                        current_firewall.firewall_rules, internal, external
                    ),
                )

            logger.info(f"Removing 1:1 mapping {internal} <-> {external} on {self.gateway.href}")
            return self._configure_services(config, "remove 1:1 mapping")

    def create_one_to_one_mapping(
        self,
        internal: str,
        external: str,
        description: str,
        in_firewall_any: bool,
        out_firewall_any: bool,
    ) -> AsyncTask:
        """
        Add a 1:1 mapping between an internal and an external address.

        Appends an SNAT and a DNAT rule on the uplink interface and, on
        request, allow-any firewall rules for inbound and outbound traffic.
        Existing rules are neither removed nor reordered.

        Args:
            internal: Internal (organization network) address
            external: External (public) address
            description: Description put on every created rule
            in_firewall_any: Also allow any inbound traffic to ``external``
            out_firewall_any: Also allow any outbound traffic from ``internal``

        Returns:
            AsyncTask of the reconfiguration
        """
        if not internal or not external:
            raise ValueError("Both internal and external addresses are required")

        with self._lock:
            self.refresh()
            uplink_href = self.uplink_interface_href()
            config = self._service_configuration()

            if config.nat_service is None:
                config.nat_service = NatService()
            config.nat_service.nat_rules.extend(
                rule_matching.build_one_to_one_nat_rules(internal, external, description, uplink_href)
            )

            if (in_firewall_any or out_firewall_any) and config.firewall_service is None:
                config.firewall_service = FirewallService()
            if in_firewall_any:
                config.firewall_service.firewall_rules.append(
                    rule_matching.build_inbound_allow_any_rule(external, description)
                )
            if out_firewall_any:
                config.firewall_service.firewall_rules.append(
                    rule_matching.build_outbound_allow_any_rule(internal, description)
                )

            logger.info(f"Creating 1:1 mapping {internal} <-> {external} on {self.gateway.href}")
            return self._configure_services(config, "create 1:1 mapping")

    # -- Bulk replacement --------------------------------------------------

    def update_service_configuration(self, config: ServiceConfiguration) -> AsyncTask:
        """
        Replace the whole service configuration with ``config``.

        The document is submitted verbatim: nothing is merged with the
        current configuration and nothing is validated.
        """
        with self._lock:
            # The fetched state is not used, but a gateway we cannot read is
            # not one we should overwrite
            self.refresh()
            logger.info(f"Replacing service configuration of {self.gateway.href}")
            return self._configure_services(config, "update service configuration")

    update_firewall = update_service_configuration

    # -- Public IPs --------------------------------------------------------

    def request_public_ip(self, network_name: str, count: str) -> AsyncTask:
        """
        Ask for ``count`` new public addresses on the named external network.

        ``count`` is passed through as given.

        Raises:
            NotFoundError: If the gateway has no interface called ``network_name``
        """
        with self._lock:
            self.refresh()
            network = self.find_network(network_name)
            action_list = ExternalIpAddressActionList(
                allocation=Allocation(
                    external_network_name=network.name,
                    external_network_ref=network.href,
                    number_of_external_ip_addresses_to_allocate=str(count),
                )
            )
            logger.info(f"Requesting {count} public IP(s) on {network_name!r} for {self.gateway.href}")
            return self._manage_external_ips(action_list, "request public IP")

    def remove_public_ip(self, network_name: str, ip_address: str) -> AsyncTask:
        """
        Give ``ip_address`` back to the named external network.

        Raises:
            NotFoundError: If the gateway has no interface called ``network_name``
        """
        with self._lock:
            self.refresh()
            network = self.find_network(network_name)
            action_list = ExternalIpAddressActionList(
                deallocation=Deallocation(
                    external_network_name=network.name,
                    external_network_ref=network.href,
                    external_ip_address=ip_address,
                )
            )
            logger.info(f"Releasing public IP {ip_address} on {network_name!r} for {self.gateway.href}")
            return self._manage_external_ips(action_list, "remove public IP")

    # -- Internals ---------------------------------------------------------

    def _configuration(self) -> GatewayConfiguration:
        if self.gateway.configuration is None:
            self.gateway.configuration = GatewayConfiguration()
        return self.gateway.configuration

    def _service_configuration(self) -> ServiceConfiguration:
        configuration = self._configuration()
        if configuration.service_configuration is None:
            configuration.service_configuration = ServiceConfiguration()
        return configuration.service_configuration

    def _action_url(self, action_path: str) -> str:
        parts = urlsplit(self.gateway.href)
        return urlunsplit(parts._replace(path=parts.path + action_path))

    def _configure_services(self, config: ServiceConfiguration, operation: str) -> AsyncTask:
        try:
            document = encode_service_configuration(config)
        except (SerializationError, ValueError, TypeError) as e:
            logger.error(f"Cannot serialize service configuration ({operation}): {e}", exc_info=True)
            raise SerializationError(f"{operation}: cannot serialize service configuration: {e}") from e
        return self._submit(
            "POST",
            CONFIGURE_SERVICES_PATH,
            document,
            {"Content-Type": SERVICE_CONFIGURATION_CONTENT_TYPE},
            operation,
        )

    def _manage_external_ips(self, action_list: ExternalIpAddressActionList, operation: str) -> AsyncTask:
        try:
            document = encode_ip_action_list(action_list)
        except (ValueError, TypeError) as e:
            logger.error(f"Cannot serialize IP allocation request ({operation}): {e}", exc_info=True)
            raise SerializationError(f"{operation}: cannot serialize IP allocation request: {e}") from e
        return self._submit(
            "PUT",
            MANAGE_EXTERNAL_IPS_PATH,
            document,
            {"Accept": IP_ALLOCATION_ACCEPT, "Content-Type": IP_ALLOCATION_CONTENT_TYPE},
            operation,
        )

    def _submit(self, method: str, action_path: str, document: str, headers: dict, operation: str) -> AsyncTask:
        if self.trace is not None:
            self.trace(f"\n\nXML DEBUG: {document}\n\n")

        url = self._action_url(action_path)
        try:
            response = check_response(
                self.http_client.request(method, url, data=XML_HEADER + document, headers=headers)
            )
        except (TransportError, HttpStatusError) as e:
            logger.error(f"Error reconfiguring edge gateway ({operation}): {e}", exc_info=True)
            raise SubmissionError(f"{operation}: error reconfiguring edge gateway: {e}") from e

        try:
            task = decode_task(response.content)
        except DecodeError as e:
            logger.error(f"Error decoding task response ({operation}): {e}", exc_info=True)
            raise TaskDecodeError(f"{operation}: error decoding task response: {e}") from e

        logger.info(f"{operation}: task {task.href or '<no href>'} is {task.status or 'unknown'}")
        return AsyncTask(self.http_client, task)
