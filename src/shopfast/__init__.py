"""ShopFast: demo e-commerce REST API over in-memory mock data."""

__version__ = "0.1.0"
