"""Seller back office: order lifecycle, seller earnings and payouts."""

__version__ = "0.1.0"
