"""
Configuration management
Environment-based exporter settings following the OTEL_* variables
"""

import logging
from typing import List, Optional, Tuple
from urllib.parse import unquote

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Metrics export settings from environment"""
    
    model_config = SettingsConfigDict(env_file=".env", env_prefix="OTEL_", extra="ignore")
    
    # Service identity
    service_name: str = Field(default="metrics-core", description="Service name attached to the resource")
    environment: str = Field(default="development", description="Deployment environment")
    
    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    
    # OTLP exporter
    exporter_otlp_endpoint: str = Field(default="http://localhost:4317", description="Collector endpoint")
    exporter_otlp_insecure: bool = Field(default=True, description="Disable TLS on the collector channel")
    exporter_otlp_timeout: int = Field(default=10000, description="Per-export deadline in milliseconds")
    exporter_otlp_headers: str = Field(default="", description="Headers sent with every export, k=v,k2=v2")
    
    # Periodic reader
    metric_export_interval: int = Field(default=60000, description="Export interval in milliseconds")
    
    def get_headers(self) -> List[Tuple[str, str]]:
        """Parse the comma separated header list into ordered pairs"""
        
        headers = []
        for entry in self.exporter_otlp_headers.split(","):
            if not entry.strip():
                continue
            name, sep, value = entry.partition("=")
            name = unquote(name.strip())
            if not sep or not name:
                logger.warning(f"Skipping malformed exporter header entry: {entry!r}")
                continue
            headers.append((name, unquote(value.strip())))
        
        return headers


# Global settings instance
_settings: Optional[Settings] = None

def get_settings() -> Settings:
    """Get exporter settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
