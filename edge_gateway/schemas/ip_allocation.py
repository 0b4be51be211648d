"""Schemas for external (public) IP address allocation requests."""
from typing import Optional
from pydantic import BaseModel

NETWORK_SERVICE_NAMESPACE = "http://www.vmware.com/vcloud/networkservice/1.0"


class Allocation(BaseModel):
    """Ask for a number of new addresses on an external network."""
    external_network_name: str = ""
    external_network_ref: str = ""
    # Sent as given, the service validates it
    number_of_external_ip_addresses_to_allocate: str = ""


class Deallocation(BaseModel):
    """Give one address back to an external network."""
    external_network_name: str = ""
    external_network_ref: str = ""
    external_ip_address: str = ""


class ExternalIpAddressActionList(BaseModel):
    """ExternalIpAddressActionList document sent to manageExternalIpAddresses."""
    xmlns: str = NETWORK_SERVICE_NAMESPACE
    allocation: Optional[Allocation] = None
    deallocation: Optional[Deallocation] = None
