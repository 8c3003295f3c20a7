"""Endpoint descriptor for a VirtualBox web service host."""

from dataclasses import dataclass, field
from typing import Union

from .exceptions import InvalidArgumentError


def _required(value, name: str) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise InvalidArgumentError(f"Endpoint {name} must be a non-empty value")
    return text


def _optional(value) -> str:
    return "" if value is None else str(value).strip()


@dataclass(frozen=True, order=True)
class EndpointDescriptor:
    """Address, web service port and credentials of a physical host.

    Address and port are mandatory; missing credentials become empty strings
    (vboxwebsrv may run with authentication disabled).
    """

    address: str
    port: Union[str, int]
    username: str = ""
    password: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "address", _required(self.address, "address"))
        object.__setattr__(self, "port", _required(self.port, "port"))
        object.__setattr__(self, "username", _optional(self.username))
        object.__setattr__(self, "password", _optional(self.password))

    @property
    def url(self) -> str:
        """URL of the web service, e.g. ``http://10.0.0.5:18083``."""
        if "." not in self.address and ":" in self.address:
            return f"http://[{self.address}]:{self.port}"
        return f"http://{self.address}:{self.port}"

    def same_endpoint(self, other: "EndpointDescriptor") -> bool:
        return self.address == other.address and self.port == other.port

    def __str__(self) -> str:
        username = self.username or '""'
        password = "***" if self.password else '""'
        return (
            f"[Physical machine: address={self.address}, port={self.port}, "
            f"username={username}, password={password}]"
        )
