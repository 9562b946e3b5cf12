"""
Metrics Core - Resource Management
OpenTelemetry resource creation for the process exporting metrics
"""

from typing import Optional

from opentelemetry.sdk.resources import Resource
from opentelemetry.semconv.resource import ResourceAttributes

from metrics_core.config import Settings, get_settings


def get_default_resource_attributes() -> dict:
    """Get resource attributes shared by every exporting process"""
    return {
        ResourceAttributes.TELEMETRY_SDK_LANGUAGE: "python",
        "metrics_core.exporter": "otlp-grpc",
    }


def create_resource(
    service_name: Optional[str] = None,
    service_version: str = "1.0.0",
    environment: Optional[str] = None,
    settings: Optional[Settings] = None
) -> Resource:
    """Create the resource description attached to exported metrics"""
    
    settings = settings or get_settings()
    
    attributes = {
        ResourceAttributes.SERVICE_NAME: service_name or settings.service_name,
        ResourceAttributes.SERVICE_VERSION: service_version,
        ResourceAttributes.DEPLOYMENT_ENVIRONMENT: environment or settings.environment,
        **get_default_resource_attributes()
    }
    
    return Resource.create(attributes)
