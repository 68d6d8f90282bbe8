"""Handle a single client connection, filtering navigations before proxying."""

import asyncio
import select
import socket
from typing import Optional, Tuple

from navfilter.decision_engine import NavigationEvent
from navfilter.enforcement import RedirectSink
from navfilter.http_parser import (
    HEADER_END,
    MAX_HEADER_BYTES,
    absolute_url,
    build_forward_request,
    content_length,
    navigation_frame_id,
    parse_http_request,
    parse_target_from_request,
    split_host_port,
)
from navfilter.logger import FilterLogger
from navfilter.navigation import NavigationFilter

BUFFER_SIZE = 4096


class ClientHandler(RedirectSink):
    """Handles an individual client connection in its own thread.

    Each connection is treated as its own tab: the request becomes a
    navigation event and a block is delivered as the response to it.
    """

    def __init__(
        self,
        client_socket: socket.socket,
        client_address: Tuple[str, int],
        navigation_filter: NavigationFilter,
        logger: FilterLogger,
        timeout: float = 10.0,
    ) -> None:
        self.client_socket = client_socket
        self.client_address = client_address
        self.navigation_filter = navigation_filter
        self.logger = logger
        self.timeout = timeout
        self.redirect_url: Optional[str] = None

    @property
    def tab_id(self) -> str:
        return f"{self.client_address[0]}:{self.client_address[1]}"

    def redirect(self, tab_id: str, new_url: str) -> None:
        self.redirect_url = new_url

    def handle(self) -> None:
        """Main entry point for processing a client request."""
        self.client_socket.settimeout(self.timeout)
        try:
            request_data = self._recv_http_request()
            if not request_data:
                return

            request_line, headers, body = parse_http_request(request_data)
            if not request_line:
                self._send_bad_request()
                return

            method, url, version = request_line

            if method.upper() == "CONNECT":
                self._handle_connect(url)
                return

            target_host, target_port, path = parse_target_from_request(url, headers)
            if not target_host:
                self._send_bad_request()
                return

            event = NavigationEvent(
                url=absolute_url(url, target_host, target_port),
                tab_id=self.tab_id,
                frame_id=navigation_frame_id(headers),
            )
            if self._is_blocked(event):
                self._send_redirect(self.redirect_url)
                return

            forward_bytes = build_forward_request(
                method=method,
                path=path,
                version=version,
                headers=headers,
                body=body,
            )
            self._proxy_request(target_host, target_port, forward_bytes, method)
        except socket.timeout:
            self.logger.error("Timeout from client %s", self.client_address[0])
        except Exception as exc:
            self.logger.error("Client handling error: %s", exc)
        finally:
            self.client_socket.close()

    def _is_blocked(self, event: NavigationEvent) -> bool:
        self.redirect_url = None
        asyncio.run(self.navigation_filter.on_before_navigate(event, self))
        return self.redirect_url is not None

    def _recv_http_request(self) -> bytes:
        """Receive the header block plus as much body as Content-Length declares."""
        data = bytearray()
        while HEADER_END not in data and len(data) <= MAX_HEADER_BYTES:
            chunk = self.client_socket.recv(BUFFER_SIZE)
            if not chunk:
                return b""
            data.extend(chunk)

        _, headers, body = parse_http_request(bytes(data))
        missing = content_length(headers) - len(body)
        while missing > 0:
            chunk = self.client_socket.recv(min(BUFFER_SIZE, missing))
            if not chunk:
                break
            data.extend(chunk)
            missing -= len(chunk)
        return bytes(data)

    def _proxy_request(
        self,
        target_host: str,
        target_port: int,
        request_bytes: bytes,
        method: str,
    ) -> None:
        """Forward the request upstream and relay the response."""
        try:
            with socket.create_connection(
                (target_host, target_port), timeout=self.timeout
            ) as upstream_socket:
                upstream_socket.sendall(request_bytes)
                self.logger.debug(
                    "Forwarded %s request to %s:%s", method, target_host, target_port
                )
                while True:
                    data = upstream_socket.recv(BUFFER_SIZE)
                    if not data:
                        break
                    self.client_socket.sendall(data)
        except OSError as exc:
            self.logger.error("Upstream error for %s: %s", target_host, exc)
            self._send_bad_gateway()

    def _handle_connect(self, authority: str) -> None:
        """Handle HTTPS tunneling; only the host is visible, so it is the navigation URL."""
        target_host, target_port = split_host_port(authority or "", 0)
        if not target_host or target_port <= 0:
            self._send_bad_request()
            return

        event = NavigationEvent(
            url=absolute_url("/", target_host, target_port, scheme="https"),
            tab_id=self.tab_id,
        )
        if self._is_blocked(event):
            self._send_forbidden(target_host, self.redirect_url)
            return

        try:
            with socket.create_connection(
                (target_host, target_port), timeout=self.timeout
            ) as upstream_socket:
                self.client_socket.sendall(b"HTTP/1.1 200 Connection Established\r\n\r\n")
                self.logger.debug("Established CONNECT tunnel to %s:%s", target_host, target_port)
                self._tunnel_bidirectional(upstream_socket)
        except OSError as exc:
            self.logger.error(
                "CONNECT upstream error for %s:%s: %s", target_host, target_port, exc
            )
            self._send_bad_gateway()

    def _tunnel_bidirectional(self, upstream_socket: socket.socket) -> None:
        """Relay bytes between client and upstream until one side closes."""
        peers = {self.client_socket: upstream_socket, upstream_socket: self.client_socket}
        for sock in peers:
            sock.settimeout(None)

        while True:
            readable, _, _ = select.select(list(peers), [], [], 30)
            for source in readable:
                data = source.recv(BUFFER_SIZE)
                if not data:
                    return
                peers[source].sendall(data)

    def _send_response(self, status: str, extra_headers: str, body: str) -> None:
        payload = body.encode("utf-8")
        response = (
            f"HTTP/1.1 {status}\r\n"
            f"{extra_headers}"
            "Content-Type: text/plain; charset=utf-8\r\n"
            f"Content-Length: {len(payload)}\r\n"
            "Connection: close\r\n"
            "\r\n"
        )
        self.client_socket.sendall(response.encode("iso-8859-1") + payload)

    def _send_redirect(self, location: str) -> None:
        self._send_response(
            "302 Found",
            f"Location: {location}\r\nCache-Control: no-store\r\n",
            f"Blocked by navigation policy. See {location}",
        )

    def _send_forbidden(self, host: str, location: str) -> None:
        self._send_response(
            "403 Forbidden",
            "",
            f"Access to {host} is blocked by navigation policy. See {location}",
        )

    def _send_bad_request(self) -> None:
        self._send_response("400 Bad Request", "", "Malformed request received by proxy.")

    def _send_bad_gateway(self) -> None:
        self._send_response("502 Bad Gateway", "", "Proxy could not reach the upstream server.")
