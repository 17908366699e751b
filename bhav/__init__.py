from .client import MarketplaceClient, create_client

__all__ = ["MarketplaceClient", "create_client"]
