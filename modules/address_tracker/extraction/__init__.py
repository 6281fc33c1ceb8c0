"""Reverse-geocoding response standardization."""

from .address_extractor import (
    AddressExtractor, CachingAddressExtractor, DEFAULT_SOURCE_KEYS,
    extract_state_abbreviation, generate_cache_key
)

__all__ = [
    'AddressExtractor', 'CachingAddressExtractor', 'DEFAULT_SOURCE_KEYS',
    'extract_state_abbreviation', 'generate_cache_key'
]
