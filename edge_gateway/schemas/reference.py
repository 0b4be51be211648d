"""Reference schema shared by the gateway and service documents."""
from pydantic import BaseModel


class Reference(BaseModel):
    """Reference to another vCloud entity (rendered as XML attributes)."""
    href: str = ""
    id: str = ""
    type: str = ""
    name: str = ""
