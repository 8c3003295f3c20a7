"""Transport gateways for the VirtualBox web service (vboxwebsrv)."""

import logging
from abc import ABC, abstractmethod
from typing import Optional
from xml.etree import ElementTree
from xml.sax.saxutils import escape

import requests

from .exceptions import TransportError

logger = logging.getLogger(__name__)

VBOX_NAMESPACE = "http://www.virtualbox.org/"
SOAP_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"

_ENVELOPE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    f'<SOAP-ENV:Envelope xmlns:SOAP-ENV="{SOAP_NAMESPACE}" xmlns:vbox="{VBOX_NAMESPACE}">'
    "<SOAP-ENV:Body><vbox:{method}>{params}</vbox:{method}></SOAP-ENV:Body>"
    "</SOAP-ENV:Envelope>"
)


class SessionHandle(ABC):
    """Handle to an established web service session."""

    @abstractmethod
    def get_api_version(self) -> str:
        """Return the API version reported by the remote VirtualBox, e.g. ``"4_3"``."""


class TransportGateway(ABC):
    """Opaque collaborator performing the actual remote connect.

    Implementations raise TransportError for every kind of failure.
    """

    @abstractmethod
    def connect(self, url: str, username: str, password: str) -> None:
        ...

    @abstractmethod
    def get_handle(self) -> SessionHandle:
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Release the remote session. Must be safe to call when not connected."""


class VBoxWebServiceHandle(SessionHandle):
    def __init__(self, gateway: "VBoxWebServiceGateway", ref: str) -> None:
        self._gateway = gateway
        self.ref = ref

    def get_api_version(self) -> str:
        return self._gateway.call("IVirtualBox_getAPIVersion", _this=self.ref)

    def __repr__(self) -> str:
        return f"VBoxWebServiceHandle({self.ref})"


class VBoxWebServiceGateway(TransportGateway):
    """Talks to vboxwebsrv through its SOAP interface using requests.

    Args:
        timeout: Per-request timeout in seconds (default: 30)
        session: Optional requests.Session to reuse; without one the gateway
            creates its own and closes it on disconnect()
    """

    def __init__(self, timeout: float = 30.0, session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self._owns_http = session is None
        self._http: Optional[requests.Session] = session
        self._url: Optional[str] = None
        self._ref: Optional[str] = None

    def connect(self, url: str, username: str, password: str) -> None:
        if self._ref is not None:
            self._logoff()
        self._url = url
        logger.debug(f"Logging on to {url} as {username!r}")
        self._ref = self.call("IWebsessionManager_logon", username=username, password=password)
        if not self._ref:
            self._ref = None
            raise TransportError(f"Web service at {url} returned an empty session reference")

    def get_handle(self) -> SessionHandle:
        if self._ref is None:
            raise TransportError("Not connected to a VirtualBox web service")
        return VBoxWebServiceHandle(self, self._ref)

    def disconnect(self) -> None:
        self._logoff()
        if self._owns_http and self._http is not None:
            self._http.close()
            self._http = None

    def _logoff(self) -> None:
        if self._ref is None:
            return
        ref, self._ref = self._ref, None
        try:
            self.call("IWebsessionManager_logoff", refIVirtualBox=ref)
        except TransportError as e:
            # the session dies with the server anyway
            logger.warning(f"Logoff from {self._url} failed: {e}")

    def call(self, method: str, **params: str) -> str:
        """Invoke a web service method and return the text of its ``returnval``."""
        if self._url is None:
            raise TransportError("No web service URL configured")

        body = "".join(f"<{k}>{escape(str(v))}</{k}>" for k, v in params.items())
        payload = _ENVELOPE.format(method=method, params=body)
        try:
            resp = self._session().post(
                self._url,
                data=payload.encode("utf-8"),
                headers={"Content-Type": "text/xml; charset=utf-8", "SOAPAction": '""'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} request to {self._url} failed: {e}") from e

        return self._parse_response(method, resp)

    def _session(self) -> requests.Session:
        if self._http is None:
            self._http = requests.Session()
        return self._http

    def _parse_response(self, method: str, resp: requests.Response) -> str:
        try:
            root = ElementTree.fromstring(resp.content)
        except ElementTree.ParseError as e:
            raise TransportError(
                f"{method}: unreadable response from {self._url} (HTTP {resp.status_code})"
            ) from e

        fault = root.find(f".//{{{SOAP_NAMESPACE}}}Fault")
        if fault is not None:
            text = fault.findtext("faultstring") or "unknown fault"
            raise TransportError(f"{method} rejected by {self._url}: {text.strip()}")

        if resp.status_code >= 400:
            raise TransportError(f"{method}: HTTP {resp.status_code} from {self._url}")

        for element in root.iter():
            if element.tag.rsplit("}", 1)[-1] == "returnval":
                return (element.text or "").strip()
        return ""

    def __repr__(self) -> str:
        status = "connected" if self._ref is not None else "disconnected"
        return f"VBoxWebServiceGateway({self._url}, {status})"
