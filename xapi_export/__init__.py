"""Read-only XAPI data export: endpoint definitions compiled from OpenAPI, invocation and tabular export."""

__version__ = "0.1.0"
