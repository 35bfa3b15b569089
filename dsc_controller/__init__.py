"""Client-side orchestration for IDS Dataspace Connectors."""

__version__ = "0.1.0"
