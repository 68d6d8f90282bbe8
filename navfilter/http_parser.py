"""HTTP request parsing for the filtering proxy."""

from typing import Dict, Tuple
from urllib.parse import urlsplit

RequestLine = Tuple[str, str, str]

HEADER_END = b"\r\n\r\n"
MAX_HEADER_BYTES = 65536


def _header_pair(line: str) -> Tuple[str, str]:
    name, value = line.split(":", 1)
    return name.strip(), value.strip()


def parse_http_request(request_bytes: bytes) -> Tuple[RequestLine, Dict[str, str], bytes]:
    """Split raw bytes into the request line, headers and body.

    Returns an empty request line when the first line is not
    ``METHOD TARGET VERSION``.
    """
    head, _, body = request_bytes.partition(HEADER_END)
    first_line, *header_lines = head.decode("iso-8859-1", errors="replace").split("\r\n")
    parts = first_line.split(" ")
    if len(parts) != 3 or not all(parts):
        return (), {}, b""
    headers = dict(_header_pair(line) for line in header_lines if ":" in line)
    return (parts[0], parts[1], parts[2]), headers, body


def content_length(headers: Dict[str, str]) -> int:
    """Declared body size; missing or malformed values count as zero."""
    try:
        return max(int(get_header(headers, "Content-Length", "0")), 0)
    except ValueError:
        return 0


def get_header(headers: Dict[str, str], name: str, default: str = "") -> str:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return default


def parse_target_from_request(url: str, headers: Dict[str, str]) -> Tuple[str, int, str]:
    """Extract target host, port and origin-form path from an absolute or origin-form target."""
    if url.lower().startswith(("http://", "https://")):
        parsed = urlsplit(url)
        host = parsed.hostname or ""
        try:
            port = parsed.port or (443 if parsed.scheme.lower() == "https" else 80)
        except ValueError:
            return "", 0, ""
        path = parsed.path or "/"
        if parsed.query:
            path = f"{path}?{parsed.query}"
        return host, port, path

    host_header = get_header(headers, "Host")
    if not host_header:
        return "", 0, ""
    host, port = split_host_port(host_header, 80)
    return host, port, url or "/"


def split_host_port(authority: str, default_port: int) -> Tuple[str, int]:
    """Split ``host[:port]`` (IPv6 hosts in brackets); bad ports yield port 0."""
    value = authority.strip()
    if value.startswith("["):
        bracket_end = value.find("]")
        if bracket_end == -1:
            return "", 0
        host = value[1:bracket_end]
        remainder = value[bracket_end + 1 :]
        if not remainder:
            return host, default_port
        if not remainder.startswith(":"):
            return "", 0
        port_str = remainder[1:]
    elif ":" in value:
        host, port_str = value.rsplit(":", 1)
    else:
        return value, default_port
    try:
        port = int(port_str)
    except ValueError:
        return "", 0
    if not 0 < port < 65536:
        return "", 0
    return host.strip(), port


def absolute_url(url: str, host: str, port: int, scheme: str = "http") -> str:
    """Reconstruct the absolute URL the browser navigated to."""
    if url.lower().startswith(("http://", "https://")):
        return url
    default_port = 443 if scheme == "https" else 80
    authority = f"[{host}]" if ":" in host else host
    if port != default_port:
        authority = f"{authority}:{port}"
    path = url if url.startswith("/") else "/"
    return f"{scheme}://{authority}{path}"


def navigation_frame_id(headers: Dict[str, str]) -> int:
    """Map fetch metadata to a frame id: 0 for top-level documents, 1 otherwise."""
    dest = get_header(headers, "Sec-Fetch-Dest").lower()
    if dest:
        return 0 if dest == "document" else 1
    accept = get_header(headers, "Accept").lower()
    return 0 if "text/html" in accept else 1


def build_forward_request(
    method: str,
    path: str,
    version: str,
    headers: Dict[str, str],
    body: bytes,
) -> bytes:
    """Build an origin-form HTTP/1.1 request to send to the upstream server."""
    forward_headers = {
        key: value
        for key, value in headers.items()
        if key.lower() not in {"proxy-connection", "proxy-authorization", "connection"}
    }
    forward_headers["Connection"] = "close"
    request_line = f"{method} {path} {version}\r\n"
    header_lines = "".join(f"{key}: {value}\r\n" for key, value in forward_headers.items())
    return (request_line + header_lines + "\r\n").encode("iso-8859-1") + body
