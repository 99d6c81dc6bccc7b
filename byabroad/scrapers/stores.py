"""Store registry and URL-to-store resolution.

The registry is seeded from the store table (``stores.yml``). A URL resolves
to a store when its host equals, or is a subdomain of, one of the store's
domains. Hosts matching nothing are classified as unknown and keyed by their
registrable domain (the last two host labels).
"""

import logging
from typing import Any
from urllib.parse import urlparse

from ..errors import InvalidURL
from ..models import StoreIdentity, StoreProfile

logger = logging.getLogger(__name__)

UNKNOWN_STORE_ID = "unknown"


def parse_host(url: str) -> str:
    """Return the lower-cased host of an http(s) URL.

    Raises:
        InvalidURL: If the URL has no http(s) scheme or no host.
    """
    try:
        parsed = urlparse((url or "").strip())
        host = parsed.hostname
    except ValueError as e:
        raise InvalidURL(url) from e

    if parsed.scheme not in ("http", "https") or not host:
        raise InvalidURL(url)
    return host.lower().rstrip(".")


def registrable_domain(host: str) -> str:
    """Last two labels of a host name."""
    labels = [label for label in host.split(".") if label]
    return ".".join(labels[-2:])


class StoreResolver:
    """Classify product URLs against the store registry."""

    def __init__(self, records: list[dict[str, Any]] | None = None):
        """Initialize the resolver.

        Args:
            records: Store records (as loaded from ``stores.yml``).
        """
        self._profiles: dict[str, StoreProfile] = {}
        self._domains: dict[str, StoreProfile] = {}
        for record in records or []:
            self.register(StoreProfile(**record))

    def register(self, profile: StoreProfile) -> None:
        """Add a store and map its domains to it."""
        self._profiles[profile.id] = profile
        for domain in profile.domains:
            self._domains[domain.lower()] = profile
        logger.debug(f"Registered store {profile.id} for {', '.join(profile.domains)}")

    def get_profile(self, store_id: str) -> StoreProfile | None:
        return self._profiles.get(store_id)

    def profiles(self) -> list[StoreProfile]:
        return list(self._profiles.values())

    def _match(self, host: str) -> tuple[str, StoreProfile] | None:
        labels = host.split(".")
        # Longest suffix first so amazon.co.uk wins over co.uk
        for start in range(len(labels) - 1):
            candidate = ".".join(labels[start:])
            profile = self._domains.get(candidate)
            if profile is not None:
                return candidate, profile
        return None

    def resolve(self, url: str) -> StoreIdentity:
        """Classify a URL's domain.

        Args:
            url: Product page URL.

        Returns:
            StoreIdentity describing the store, or an unknown identity.

        Raises:
            InvalidURL: If the URL cannot be parsed or has no host.
        """
        host = parse_host(url)
        match = self._match(host)

        if match is None:
            domain = registrable_domain(host)
            return StoreIdentity(
                id=UNKNOWN_STORE_ID,
                display_name=domain,
                domain=domain,
                is_unknown=True,
            )

        domain, profile = match
        return StoreIdentity(
            id=profile.id,
            display_name=profile.display_name,
            domain=domain,
            has_structured_extractor=profile.has_structured_extractor,
            is_known_unsupported=not profile.has_structured_extractor,
        )

    def supported_domains(self) -> list[str]:
        """Domains of stores that have a structured extractor."""
        return sorted(d for d, p in self._domains.items() if p.has_structured_extractor)
