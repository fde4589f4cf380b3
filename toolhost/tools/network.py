"""
Network tools: name resolution, TCP reachability and HTTP requests.

Timeouts default to the ``dns_timeout`` / ``http_timeout`` settings.
"""

from __future__ import annotations

import socket
import time
from typing import Any, Dict, List, Optional

import requests

from toolhost.tools.base import Param, ToolContext, ToolError, ToolUnit

_RECORD_FAMILIES = {
    "A": socket.AF_INET,
    "AAAA": socket.AF_INET6,
    "ANY": socket.AF_UNSPEC,
}

MAX_BODY_CHARS = 4000


def resolve_dns_name(ctx: ToolContext, Name: str, Type: str = "A") -> Dict[str, Any]:
    record_type = (Type or "A").upper()
    family = _RECORD_FAMILIES.get(record_type)
    if family is None:
        raise ToolError(
            f"Unsupported record type '{Type}'. Supported: {', '.join(_RECORD_FAMILIES)}"
        )

    previous = socket.getdefaulttimeout()
    socket.setdefaulttimeout(float(ctx.setting("dns_timeout", 5)))
    try:
        infos = socket.getaddrinfo(Name, None, family, socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise ToolError(f"{Name}: DNS name does not exist ({exc.strerror})")
    finally:
        socket.setdefaulttimeout(previous)

    addresses: List[str] = []
    for _, _, _, _, sockaddr in infos:
        if sockaddr[0] not in addresses:
            addresses.append(sockaddr[0])
    return {"name": Name, "type": record_type, "addresses": addresses}


def check_tcp_port(
    ctx: ToolContext,
    ComputerName: str,
    Port: int,
    TimeoutSeconds: Optional[float] = None,
) -> Dict[str, Any]:
    timeout = float(TimeoutSeconds or ctx.setting("dns_timeout", 5))
    t0 = time.perf_counter()
    try:
        with socket.create_connection((ComputerName, int(Port)), timeout=timeout):
            succeeded = True
            detail = "connected"
    except OSError as exc:
        succeeded = False
        detail = str(exc) or type(exc).__name__
    return {
        "computer_name": ComputerName,
        "port": int(Port),
        "tcp_test_succeeded": succeeded,
        "detail": detail,
        "elapsed_ms": int((time.perf_counter() - t0) * 1000),
    }


def invoke_web_request(
    ctx: ToolContext,
    Uri: str,
    Method: str = "GET",
    Headers: Optional[Dict[str, Any]] = None,
    Body: Optional[str] = None,
    TimeoutSeconds: Optional[float] = None,
) -> Dict[str, Any]:
    timeout = float(TimeoutSeconds or ctx.setting("http_timeout", 30))
    headers = {str(k): str(v) for k, v in (Headers or {}).items()}
    try:
        response = requests.request(
            (Method or "GET").upper(), Uri, headers=headers, data=Body, timeout=timeout
        )
    except requests.RequestException as exc:
        raise ToolError(f"{Method} {Uri} failed: {exc}")

    body = response.text
    truncated = len(body) > MAX_BODY_CHARS
    return {
        "status_code": response.status_code,
        "reason": response.reason,
        "headers": dict(response.headers),
        "content": body[:MAX_BODY_CHARS],
        "truncated": truncated,
    }


def tools() -> List[ToolUnit]:
    return [
        ToolUnit(
            name="Resolve-DnsName",
            handler=resolve_dns_name,
            params=(
                Param("Name", str, required=True, description="Host name to resolve"),
                Param("Type", str, description="Record type: A, AAAA or ANY"),
            ),
            description="Resolve a host name through the system resolver.",
            kind="Cmdlet",
        ),
        ToolUnit(
            name="Test-NetConnection",
            handler=check_tcp_port,
            params=(
                Param("ComputerName", str, required=True),
                Param("Port", int, required=True),
                Param("TimeoutSeconds", float),
            ),
            description="Check whether a TCP port is reachable.",
            kind="Cmdlet",
        ),
        ToolUnit(
            name="Invoke-WebRequest",
            handler=invoke_web_request,
            params=(
                Param("Uri", str, required=True),
                Param("Method", str),
                Param("Headers", Dict[str, Any]),
                Param("Body", str),
                Param("TimeoutSeconds", float),
            ),
            description="Send an HTTP request and return status, headers and body.",
            kind="Cmdlet",
        ),
    ]
