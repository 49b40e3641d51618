"""
Tenant (instance) context.

Every data API call runs on behalf of one instance, resolved from the
request Host. The resolved Instance is passed explicitly to the adapter;
nothing downstream looks it up on its own.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from jsonapi import errors as jsonapi

logger = logging.getLogger(__name__)

DEV_DOMAIN = "dev"


@dataclass(frozen=True)
class Instance:
    """A tenant of the stack"""
    domain: str
    registries: List[str] = field(default_factory=list)

    @property
    def db_prefix(self) -> str:
        """Prefix isolating this instance's databases"""
        return self.domain.replace(".", "-").replace(":", "-")

    def db_name(self, doctype: str) -> str:
        """Store database holding the documents of a doctype"""
        return f"{self.db_prefix}/{doctype.replace('.', '-')}"


class TenantRegistry:
    """Known instances, addressed by domain.

    Args:
        domains: configured instance domains
        registries: application registries shared by every instance
        dev_fallback: serve unknown hosts from the "dev" instance instead
            of rejecting them
    """

    def __init__(self, domains: Iterable[str], registries: Optional[List[str]] = None,
                 dev_fallback: bool = False):
        registries = list(registries or [])
        self._instances: Dict[str, Instance] = {
            domain.lower(): Instance(domain=domain.lower(), registries=registries)
            for domain in domains
        }
        self.dev_fallback = dev_fallback
        if dev_fallback:
            self._instances.setdefault(DEV_DOMAIN, Instance(domain=DEV_DOMAIN, registries=registries))

    @staticmethod
    def _strip_port(host: str) -> str:
        host = host.strip().lower()
        if host.startswith("["):
            return host
        return host.split(":", 1)[0]

    def resolve(self, host: Optional[str]) -> Instance:
        """Return the instance serving host, or raise a 404 error"""
        domain = self._strip_port(host or "")
        instance = self._instances.get(domain)
        if instance is not None:
            return instance
        if self.dev_fallback:
            logger.debug("Unknown host %r served by the dev instance", host)
            return self._instances[DEV_DOMAIN]
        raise jsonapi.not_found("instance not found")
