"""
Configuration for the data API
"""
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlparse

API_VERSION = "0.4.0"

DEFAULT_STORE_URL = "sqlite:///app/data/docstore.db"
DEFAULT_FALLBACK_REGISTRY = "http://localhost:8081/registry/"


@dataclass
class StoreConfig:
    """Document store connection.

    Supports:
    - sqlite:///path/to/db.sqlite (embedded store)
    - sqlite:///:memory:
    - http(s)://user:pass@host:5984/ (CouchDB)
    """
    url: str = DEFAULT_STORE_URL
    timeout: float = 10.0

    @property
    def sqlite_path(self) -> str:
        """Filesystem path of the SQLite database"""
        path = self.url.split("sqlite://", 1)[-1]
        if path in ("", "/"):
            return ":memory:"
        if path == "/:memory:":
            return ":memory:"
        return path

    @property
    def base_url(self) -> str:
        """CouchDB root URL without credentials"""
        parsed = urlparse(self.url)
        netloc = parsed.hostname or "localhost"
        if parsed.port:
            netloc = f"{netloc}:{parsed.port}"
        path = parsed.path if parsed.path.endswith("/") else parsed.path + "/"
        return f"{parsed.scheme}://{netloc}{path}"

    @property
    def credentials(self) -> Optional[tuple]:
        parsed = urlparse(self.url)
        if parsed.username:
            return (parsed.username, parsed.password or "")
        return None


@dataclass
class TenantConfig:
    """Known instances (tenants), addressed by the request Host"""
    domains: List[str] = field(default_factory=lambda: ["localhost"])
    # Unknown hosts are rejected unless this legacy fallback is enabled
    dev_fallback: bool = False


@dataclass
class RegistryConfig:
    """Application registry proxy"""
    urls: List[str] = field(default_factory=list)
    fallback_url: str = DEFAULT_FALLBACK_REGISTRY
    timeout: float = 10.0


@dataclass
class NamespaceConfig:
    """Doctype namespace rules on top of the built-in reserved table"""
    reserved: List[str] = field(default_factory=list)
    readable_reserved: List[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class Config:
    """Main configuration container"""
    store: StoreConfig
    tenants: TenantConfig
    registry: RegistryConfig
    namespaces: NamespaceConfig
    logging: LoggingConfig
    server: ServerConfig

    @classmethod
    def default(cls) -> 'Config':
        """Configuration with every group at its defaults"""
        return cls(
            store=StoreConfig(),
            tenants=TenantConfig(),
            registry=RegistryConfig(),
            namespaces=NamespaceConfig(),
            logging=LoggingConfig(),
            server=ServerConfig(),
        )

    @classmethod
    def from_env(cls) -> 'Config':
        """Create config from environment - delegates to EnvironmentConfigLoader"""
        from environment_config_loader import EnvironmentConfigLoader
        return EnvironmentConfigLoader().load()

# Default instance
default_config = Config.from_env()
