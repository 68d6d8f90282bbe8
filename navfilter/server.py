"""Filtering proxy that accepts connections and delegates to client handlers."""

import asyncio
import socket
import threading

from navfilter.client_handler import ClientHandler
from navfilter.logger import FilterLogger
from navfilter.navigation import NavigationFilter


class ProxyServer:
    """TCP listener that spawns a thread per incoming client connection."""

    def __init__(
        self,
        host: str,
        port: int,
        navigation_filter: NavigationFilter,
        logger: FilterLogger,
    ) -> None:
        self.host = host
        self.port = port
        self.navigation_filter = navigation_filter
        self.logger = logger
        self._shutdown_event = threading.Event()

    def start(self) -> None:
        """Reconcile the blocklist, then accept clients until stopped."""
        asyncio.run(self.navigation_filter.initialize())
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server_socket:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.host, self.port))
            server_socket.listen(100)
            server_socket.settimeout(1.0)
            self.logger.info("Filtering proxy listening on %s:%s", self.host, self.port)

            while not self._shutdown_event.is_set():
                try:
                    client_socket, client_addr = server_socket.accept()
                except socket.timeout:
                    continue
                except OSError as exc:
                    self.logger.error("Accept failed: %s", exc)
                    continue

                handler = ClientHandler(
                    client_socket=client_socket,
                    client_address=client_addr,
                    navigation_filter=self.navigation_filter,
                    logger=self.logger,
                )
                thread = threading.Thread(target=handler.handle, daemon=True)
                thread.start()

    def stop(self) -> None:
        self._shutdown_event.set()
