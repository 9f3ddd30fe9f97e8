"""sdkgen: typed Python client generation from OpenAPI / Swagger descriptions."""

__version__ = "0.1.0"
