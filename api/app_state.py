from typing import Optional

from config import Config
from namespace_guard import DoctypeClassification, NamespaceGuard
from operations.data_adapter import DataAccessAdapter
from tenancy import TenantRegistry


class CoreServices:
    """Core service dependencies

    Holds the document store and the adapter built on top of it.
    """

    def __init__(self):
        self.store = None
        self.adapter: Optional[DataAccessAdapter] = None


class TenancyServices:
    """Tenant resolution and namespace rules

    Separated from CoreServices to maintain SRP.
    """

    def __init__(self):
        self.tenants: Optional[TenantRegistry] = None
        self.guard: Optional[NamespaceGuard] = None


class ProxyServices:
    """Outbound proxies to other HTTP services"""

    def __init__(self):
        self.registry = None


class AppState:
    """Application state container

    Composes focused state objects; delegation methods hide the internal
    structure from route handlers (Law of Demeter).
    """

    def __init__(self):
        self.core = CoreServices()
        self.tenancy = TenancyServices()
        self.proxies = ProxyServices()

    @classmethod
    def from_config(cls, config: Config, store=None, registry=None) -> 'AppState':
        """Wire every service from configuration.

        store and registry are the already opened collaborators.
        """
        state = cls()
        state.tenancy.tenants = TenantRegistry(
            config.tenants.domains,
            registries=config.registry.urls,
            dev_fallback=config.tenants.dev_fallback,
        )
        state.tenancy.guard = NamespaceGuard(DoctypeClassification(
            extra_reserved=config.namespaces.reserved,
            readable=config.namespaces.readable_reserved,
        ))
        if store is not None:
            state.set_store(store)
        state.proxies.registry = registry
        return state

    # === Service Access Delegation (for route handlers) ===

    def set_store(self, store):
        """Attach a document store and build the adapter over it"""
        self.core.store = store
        self.core.adapter = DataAccessAdapter(store, guard=self.tenancy.guard)

    def get_store(self):
        """Get the document store"""
        return self.core.store

    def get_adapter(self) -> Optional[DataAccessAdapter]:
        """Get the data access adapter"""
        return self.core.adapter

    def get_tenants(self) -> Optional[TenantRegistry]:
        """Get the tenant registry"""
        return self.tenancy.tenants

    def get_registry_proxy(self):
        """Get the application registry proxy"""
        return self.proxies.registry

    # === Lifecycle Management Delegation ===

    async def is_store_available(self) -> bool:
        """Check the document store answers (async, non-blocking for API routes)"""
        if self.core.store is None:
            return False
        return await self.core.store.ping()

    async def close_all_resources(self):
        """Close store and proxy connections"""
        if self.proxies.registry:
            await self.proxies.registry.close()
        if self.core.store:
            await self.core.store.close()
