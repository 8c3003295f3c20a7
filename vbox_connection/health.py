# vbox_connection/health.py
from __future__ import annotations

import errno
import math
import platform
import socket
import subprocess
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

# 10061 is WSAECONNREFUSED on Windows
_REFUSED_CODES = (errno.ECONNREFUSED, 10061)


@dataclass
class ProbeResult:
    ok: bool
    reason: str
    latency_ms: Optional[float] = None
    error: Optional[str] = None


@dataclass
class EndpointProbe:
    alive: bool
    reasons: Dict[str, str] = field(default_factory=dict)


def tcp_probe(host: str, port: int, timeout_ms: int = 300) -> ProbeResult:
    """
    Try a TCP connect() to (host, port).
    ok=True only when connect succeeds (web service listening).
    A refusal still proves the host is up, so it is reported as "refused".
    """
    start = time.perf_counter()
    sock = socket.socket(socket.AF_INET6 if ":" in host else socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(timeout_ms / 1000.0)
    try:
        code = sock.connect_ex((host, int(port)))  # 0 = success; errno on failure
        elapsed = (time.perf_counter() - start) * 1000.0
        if code == 0:
            return ProbeResult(True, f"{port} ok", latency_ms=elapsed)
        if code in _REFUSED_CODES:
            return ProbeResult(False, f"{port} refused", latency_ms=elapsed, error=str(code))
        return ProbeResult(False, f"{port} error {code}", latency_ms=elapsed, error=str(code))
    except socket.timeout:
        return ProbeResult(False, f"{port} timeout", error="timeout")
    except (OSError, ValueError) as e:
        return ProbeResult(False, f"{port} os error", error=f"{e.__class__.__name__}: {e}")
    finally:
        sock.close()


def icmp_probe(host: str, timeout_ms: int = 300) -> ProbeResult:
    """
    Send a single ping using the system 'ping' command (works without raw-socket privileges).
    Many networks block ICMP, so a failure here is only a hint.
    """
    system = platform.system().lower()
    if "windows" in system:
        cmd = ["ping", "-n", "1", "-w", str(timeout_ms), host]
    else:
        sec = max(1, math.ceil(timeout_ms / 1000.0))
        cmd = ["ping", "-c", "1", "-W", str(sec), "-n", host]

    start = time.perf_counter()
    try:
        p = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        return ProbeResult(False, "unavailable (no 'ping' command)")
    except OSError as e:
        return ProbeResult(False, "error", error=f"{e.__class__.__name__}: {e}")
    elapsed = (time.perf_counter() - start) * 1000.0
    if p.returncode == 0:
        return ProbeResult(True, "icmp ok", latency_ms=elapsed)
    return ProbeResult(False, "no reply", latency_ms=elapsed)


def probe_endpoint(descriptor) -> EndpointProbe:
    """Layered reachability of a web service endpoint: its TCP port, then ICMP."""
    reasons = {}
    tcp = tcp_probe(descriptor.address, descriptor.port)
    reasons["tcp"] = tcp.reason
    icmp = icmp_probe(descriptor.address)
    reasons["icmp"] = icmp.reason
    return EndpointProbe(alive=tcp.ok or icmp.ok, reasons=reasons)
