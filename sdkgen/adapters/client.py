"""Concrete client adapters for Swagger 2.x and OpenAPI 3.0.x descriptions."""

from sdkgen.adapters.base import TemplateAdapter
from sdkgen.description import DescriptionDocument


class Swagger2ClientAdapter(TemplateAdapter):
    name = "swagger2-client"
    schema_root = ("definitions",)
    version_prefixes = ("2",)

    def base_url(self, document: DescriptionDocument) -> str:
        host = document.data.get("host")
        if not host:
            return document.data.get("basePath") or ""
        schemes = document.data.get("schemes") or ["https"]
        return f"{schemes[0]}://{host}{document.data.get('basePath') or ''}"


class OpenAPI30ClientAdapter(TemplateAdapter):
    name = "openapi30-client"
    schema_root = ("components", "schemas")
    version_prefixes = ("3.0",)

    def base_url(self, document: DescriptionDocument) -> str:
        servers = document.data.get("servers") or []
        if servers and isinstance(servers[0], dict):
            return str(servers[0].get("url") or "")
        return ""
