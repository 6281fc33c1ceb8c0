"""Bounded LRU storage for standardized addresses."""

from .bounded_address_store import BoundedAddressStore, StoreStats

__all__ = ['BoundedAddressStore', 'StoreStats']
