"""
Address Extractor

Converts a Nominatim (OpenStreetMap) reverse-geocoding JSON response into a
StandardizedAddress. Each standardized field is read from an ordered list of
response keys; the first non-blank one wins. OSM ``addr:*`` tags take
precedence over Nominatim's derived keys.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from ..address_store.bounded_address_store import BoundedAddressStore
from ..models.standardized_address import StandardizedAddress, ReferencePlace

logger = logging.getLogger(__name__)

# Mirrors config/address_field_mapping.json
DEFAULT_SOURCE_KEYS: Dict[str, List[str]] = {
    "street": ["addr:street", "road", "street", "pedestrian"],
    "house_number": ["addr:housenumber", "house_number"],
    "neighborhood": ["addr:neighbourhood", "neighbourhood", "suburb", "quarter"],
    # hamlet is deliberately absent: hamlets subdivide municipalities
    "municipality": ["addr:city", "city", "town", "municipality", "village"],
    "state": ["addr:state", "state"],
    "metropolitan_region": ["county"],
    "postal_code": ["addr:postcode", "postcode"],
    "country": ["country"],
}

DEFAULT_COUNTRY = "Brasil"

_ISO_STATE_PATTERN = re.compile(r"^BR-([A-Z]{2})$")
_TWO_LETTER_STATE = re.compile(r"^[A-Z]{2}$")


def extract_state_abbreviation(iso3166_code: Optional[str]) -> Optional[str]:
    """Extract the two-letter state code from an ISO 3166-2 code like "BR-SP"."""
    if not iso3166_code or not isinstance(iso3166_code, str):
        return None
    match = _ISO_STATE_PATTERN.match(iso3166_code)
    return match.group(1) if match else None


def generate_cache_key(response: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Content key for a geocoder response.

    Joins street, house number, neighborhood, city, postcode and country
    code with "|", skipping empty components.

    Returns:
        The key, or None when the response has no usable address component
    """
    if not response or not response.get("address"):
        return None

    address = response["address"]
    components = [
        address.get("road") or address.get("street") or "",
        address.get("house_number") or "",
        address.get("neighbourhood") or address.get("suburb") or "",
        address.get("city") or address.get("town") or address.get("municipality") or "",
        address.get("postcode") or "",
        address.get("country_code") or "",
    ]
    key = "|".join(str(c) for c in components if str(c).strip())
    return key or None


class AddressExtractor:
    """Stateless Nominatim response → StandardizedAddress converter."""

    def __init__(self, source_keys: Optional[Dict[str, List[str]]] = None):
        """Initialize the extractor.

        Args:
            source_keys: Field name → ordered response keys; defaults to
                ``DEFAULT_SOURCE_KEYS``. Typically ``ConfigLoader.get_source_keys()``.
        """
        self.source_keys = dict(DEFAULT_SOURCE_KEYS)
        if source_keys:
            self.source_keys.update(source_keys)

    def extract(self, response: Optional[Mapping[str, Any]]) -> StandardizedAddress:
        """Standardize a reverse-geocoding response.

        A response without an ``address`` object yields an empty address
        (country "Brasil", everything else None).
        """
        if not response or not isinstance(response.get("address"), Mapping):
            return StandardizedAddress()

        address = response["address"]
        values = {
            field: self._first_present(address, keys)
            for field, keys in self.source_keys.items()
        }

        values["state_abbreviation"] = self._state_abbreviation(address, values.get("state"))
        values["country"] = self._country(values.get("country"))
        values["reference_place"] = ReferencePlace(
            class_name=response.get("class"),
            type_name=response.get("type"),
            name=response.get("name"),
        )

        return StandardizedAddress(**values)

    @staticmethod
    def _first_present(address: Mapping[str, Any], keys: List[str]) -> Optional[str]:
        for key in keys:
            value = address.get(key)
            if value is not None and str(value).strip():
                return str(value)
        return None

    @staticmethod
    def _state_abbreviation(address: Mapping[str, Any], state: Optional[str]) -> Optional[str]:
        # A bare two-letter state is itself the abbreviation
        if state and _TWO_LETTER_STATE.match(state.strip()):
            return state.strip()

        state_code = address.get("state_code")
        if isinstance(state_code, str) and _TWO_LETTER_STATE.match(state_code.strip().upper()):
            return state_code.strip().upper()

        return extract_state_abbreviation(address.get("ISO3166-2-lvl4"))

    @staticmethod
    def _country(country: Optional[str]) -> str:
        if not country or country in ("Brasil", "Brazil"):
            return DEFAULT_COUNTRY
        return country


class CachingAddressExtractor:
    """AddressExtractor memoized in a BoundedAddressStore.

    Responses with the same content key (see ``generate_cache_key``) return
    the same StandardizedAddress instance. Responses without a key are
    extracted every time.
    """

    def __init__(self,
                 extractor: Optional[AddressExtractor] = None,
                 store: Optional[BoundedAddressStore] = None):
        self.extractor = extractor if extractor is not None else AddressExtractor()
        self.store = store if store is not None else BoundedAddressStore(
            capacity=50, name="ExtractionCache"
        )

    def extract(self, response: Optional[Mapping[str, Any]]) -> StandardizedAddress:
        cache_key = generate_cache_key(response)

        if cache_key is not None:
            cached = self.store.get(cache_key)
            if cached is not None:
                return cached

        address = self.extractor.extract(response)

        if cache_key is not None:
            self.store.set(cache_key, address)
            logger.debug(f"Cached standardized address for key {cache_key!r}")

        return address
