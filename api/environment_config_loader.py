"""
Environment configuration loader.

Logic for reading environment variables lives with the data source
(environment) rather than in the Config dataclasses.
"""
import os
from typing import List

from config import (
    Config, StoreConfig, TenantConfig, RegistryConfig, NamespaceConfig,
    LoggingConfig, ServerConfig, DEFAULT_STORE_URL, DEFAULT_FALLBACK_REGISTRY
)


class EnvironmentConfigLoader:
    """Loads configuration from environment variables."""

    def load(self) -> Config:
        """Create Config from environment variables"""
        return Config(
            store=self._load_store_config(),
            tenants=self._load_tenant_config(),
            registry=self._load_registry_config(),
            namespaces=self._load_namespace_config(),
            logging=LoggingConfig(level=self._get_optional("LOG_LEVEL", "INFO").upper()),
            server=ServerConfig(
                host=self._get_optional("HOST", ServerConfig.host),
                port=self._get_int("PORT", ServerConfig.port),
            ),
        )

    def _load_store_config(self) -> StoreConfig:
        """Load document store configuration from environment"""
        return StoreConfig(
            url=self._get_optional("STORE_URL", DEFAULT_STORE_URL),
            timeout=self._get_float("STORE_TIMEOUT", 10.0),
        )

    def _load_tenant_config(self) -> TenantConfig:
        """Load tenant list from environment"""
        return TenantConfig(
            domains=self._get_list("TENANTS", ["localhost"]),
            dev_fallback=self._get_bool("TENANT_DEV_FALLBACK", False),
        )

    def _load_registry_config(self) -> RegistryConfig:
        """Load registry proxy configuration from environment"""
        return RegistryConfig(
            urls=self._get_list("REGISTRY_URLS", []),
            fallback_url=self._get_optional("REGISTRY_FALLBACK_URL", DEFAULT_FALLBACK_REGISTRY),
            timeout=self._get_float("REGISTRY_TIMEOUT", 10.0),
        )

    def _load_namespace_config(self) -> NamespaceConfig:
        """Load doctype namespace rules from environment"""
        return NamespaceConfig(
            reserved=self._get_list("RESERVED_DOCTYPES", []),
            readable_reserved=self._get_list("RESERVED_READABLE_DOCTYPES", []),
        )

    def _get_optional(self, key: str, default: str) -> str:
        """Get optional string environment variable"""
        return os.getenv(key, default)

    def _get_bool(self, key: str, default: bool) -> bool:
        """Get boolean environment variable"""
        value = os.getenv(key, str(default).lower())
        return value.lower() == "true"

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable"""
        value = os.getenv(key, str(default))
        return int(value)

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable"""
        value = os.getenv(key, str(default))
        return float(value)

    def _get_list(self, key: str, default: List[str]) -> List[str]:
        """Get comma separated environment variable"""
        value = os.getenv(key)
        if value is None:
            return list(default)
        return [item.strip() for item in value.split(",") if item.strip()]
