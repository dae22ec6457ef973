"""
Host scoping for the crawl.

The policy decides which fetch targets may be sent to the transport. It is
consulted at fetch time, never at enqueue time.
"""

import logging
from typing import Iterable, Optional, Set

from .errors import MalformedURL
from .normalizer import parse_url


SEEDS = "seeds"
FIRST_RESPONSE = "first-response"
HOST_POLICIES = (SEEDS, FIRST_RESPONSE)


def host_of(url: str) -> str:
    """Extract the lower-cased ``host[:port]`` of a URL, or '' if it has none."""
    parts = parse_url(url)
    return parts.netloc.rpartition('@')[2].lower()


class HostPolicy:
    """
    Allows only hosts registered from the seed URLs.

    Hosts are registered before the crawl starts; after :meth:`freeze` the
    set is read-only.
    """

    def __init__(self, seed_urls: Optional[Iterable[str]] = None):
        self.logger = logging.getLogger(__name__)
        self._hosts: Set[str] = set()
        self._frozen = False

        for url in seed_urls or ():
            self.register(url)

    @property
    def hosts(self) -> frozenset:
        return frozenset(self._hosts)

    def register(self, url: str):
        """Record the host of ``url`` as allowed."""
        if self._frozen:
            raise RuntimeError("host policy is frozen")

        host = host_of(url)
        if not host:
            raise MalformedURL("URL has no host", url)

        if host not in self._hosts:
            self._hosts.add(host)
            self.logger.info(f"Allowing host: {host}")

    def freeze(self):
        self._frozen = True

    def is_allowed(self, url: str) -> bool:
        """Report whether ``url`` points at a registered host."""
        try:
            host = host_of(url)
        except MalformedURL:
            return False
        return bool(host) and host in self._hosts

    def observe_response(self, final_url: str):
        """Called after each successful fetch; nothing to learn here."""


class FirstResponseHostPolicy(HostPolicy):
    """
    Locks onto the host of the first successful response.

    Until a response arrives every host is allowed, so only the seeds can
    be fetched before the lock. Seed registration is a no-op.
    """

    def register(self, url: str):
        host_of(url)

    def is_allowed(self, url: str) -> bool:
        if not self._hosts:
            try:
                return bool(host_of(url))
            except MalformedURL:
                return False
        return super().is_allowed(url)

    def observe_response(self, final_url: str):
        if self._hosts:
            return

        host = host_of(final_url)
        if host:
            self._hosts.add(host)
            self._frozen = True
            self.logger.info(f"Locked crawl onto host: {host}")


def create_host_policy(name: str = SEEDS) -> HostPolicy:
    """Build the host policy registered under ``name``."""
    if name == SEEDS:
        return HostPolicy()
    if name == FIRST_RESPONSE:
        return FirstResponseHostPolicy()
    raise ValueError(f"Unknown host policy: {name!r} (expected one of {', '.join(HOST_POLICIES)})")
