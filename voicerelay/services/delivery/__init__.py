"""
Delivery module - HTTP submission of voice records to the collector.
"""

from .client import DeliveryClient

__all__ = ["DeliveryClient"]
