"""Named and default Client instances with coordinated shutdown."""

from __future__ import annotations

import threading
from typing import Any, Callable, Mapping

from banshee.core.client import Client
from banshee.core.config import ClientConfig
from banshee.core.errors import NotFoundError
from banshee.core.logging import REGISTRY_LOGGER, get_logger

ClientFactory = Callable[[ClientConfig, str | None], Client]


def _default_factory(config: ClientConfig, name: str | None) -> Client:
    return Client(config, name=name)


class Registry:
    """Owns one optional default Client plus a name -> Client mapping.

    A single lock guards all reads and writes. Clients leave the registry
    only when replaced under the same name or through shutdown_all(),
    which empties it. Either way they are shut down.

    Args:
        client_factory: Builds a Client from a config and name. Tests inject
            clients with fake posters through this.
    """

    def __init__(self, client_factory: ClientFactory | None = None) -> None:
        self._factory = client_factory or _default_factory
        self._default: Client | None = None
        self._instances: dict[str, Client] = {}
        self._lock = threading.RLock()
        self._log = get_logger(REGISTRY_LOGGER)

    def create(self, config: ClientConfig | Mapping[str, Any], name: str | None = None) -> Client:
        """Build, register and start a Client.

        A named client replaces any previous holder of that name, and the
        replaced client is shut down so its queued events get a final flush.
        Delivery errors from that shutdown are logged, not raised. An unnamed
        client becomes the default only when there is none yet; otherwise the
        existing default is kept and the new client, although started, is
        not reachable through get().

        Raises:
            ConfigurationError: If config is invalid. Nothing is registered.
        """
        client = self._factory(ClientConfig.from_mapping(config), name)
        replaced: Client | None = None

        with self._lock:
            if name:
                replaced = self._instances.get(name)
                self._instances[name] = client
            elif self._default is None:
                self._default = client
            else:
                self._log.warning(
                    "Default client already registered; keeping it. "
                    "Pass a name to make the new client reachable.",
                    extra={"client": client.name},
                )

        if replaced is not None:
            self._log.warning(
                f"Client instance {name!r} replaced; shutting down the previous one",
                extra={"client": name},
            )
            try:
                replaced.shutdown()
            except Exception as e:
                self._log.error(
                    f"Replaced client shutdown failed: {e}",
                    extra={"client": name, "error": str(e)},
                )

        return client.start()

    def get(self, name: str | None = None) -> Client:
        """Return the named client, or the default when name is None.

        Raises:
            NotFoundError: If no such client is registered.
        """
        with self._lock:
            if name:
                try:
                    return self._instances[name]
                except KeyError:
                    raise NotFoundError(f"client instance {name!r} not found") from None
            if self._default is None:
                raise NotFoundError("no default client registered; call create() first")
            return self._default

    def has(self, name: str | None = None) -> bool:
        with self._lock:
            if name:
                return name in self._instances
            return self._default is not None

    def names(self) -> list[str]:
        with self._lock:
            return list(self._instances)

    def shutdown_all(self) -> None:
        """Shut down every registered client and empty the registry.

        Every client is attempted even when some fail; the first error is
        raised after the registry has been cleared.
        """
        with self._lock:
            clients = ([self._default] if self._default is not None else []) + list(
                self._instances.values()
            )
            first_error: Exception | None = None
            for client in clients:
                try:
                    client.shutdown()
                except Exception as e:
                    self._log.error(
                        f"Client shutdown failed: {e}",
                        extra={"client": client.name, "error": str(e)},
                    )
                    if first_error is None:
                        first_error = e
            self._default = None
            self._instances = {}

        if first_error is not None:
            raise first_error
