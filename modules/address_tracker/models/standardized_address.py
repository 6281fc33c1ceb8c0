"""StandardizedAddress Data Model

This module defines the Pydantic models for a Brazilian standardized address
and the reference place (nearby landmark) that reverse geocoding returns
alongside it. Both are immutable: a change of address is represented by a new
StandardizedAddress replacing the cached one.
"""

from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


NO_REFERENCE_PLACE = "Não classificado"

# Reference place classes that describe something a user can be "at"
VALID_REFERENCE_PLACE_CLASSES = ("place", "shop", "amenity", "railway")

REFERENCE_PLACE_LABELS = {
    "place": {"house": "Residencial"},
    "shop": {
        "mall": "Shopping Center",
        "car_repair": "Oficina Mecânica",
    },
    "amenity": {"cafe": "Café"},
    "railway": {
        "subway": "Estação do Metrô",
        "station": "Estação do Metrô",
    },
}

# Fields compared by is_empty(); country is excluded because it defaults to "Brasil"
ADDRESS_CONTENT_FIELDS: List[str] = [
    "street",
    "house_number",
    "neighborhood",
    "municipality",
    "state",
    "state_abbreviation",
    "metropolitan_region",
    "postal_code",
]


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


class ReferencePlace(BaseModel):
    """Nearby landmark reported by the geocoder (OSM ``class``/``type``/``name``)."""

    model_config = ConfigDict(frozen=True)

    class_name: Optional[str] = Field(None, description="OSM class, e.g. 'shop'")
    type_name: Optional[str] = Field(None, description="OSM type, e.g. 'mall'")
    name: Optional[str] = Field(None, description="Landmark name")

    @field_validator('class_name', 'type_name', 'name', mode='before')
    @classmethod
    def normalize_blank(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings as missing."""
        return _blank_to_none(v)

    @computed_field
    @property
    def description(self) -> str:
        """Portuguese description of the landmark."""
        if not self.class_name or not self.type_name:
            return NO_REFERENCE_PLACE

        if self.class_name not in VALID_REFERENCE_PLACE_CLASSES:
            return NO_REFERENCE_PLACE

        label = REFERENCE_PLACE_LABELS.get(self.class_name, {}).get(self.type_name)
        if label:
            return f"{label} {self.name}" if self.name else label

        return f"{self.class_name}: {self.type_name}"

    def __str__(self) -> str:
        base = f"ReferencePlace: {self.description}"
        return f"{base} - {self.name}" if self.name else base


class StandardizedAddress(BaseModel):
    """Brazilian standardized address produced from a reverse-geocoding response.

    Every field is optional because real geocoder responses are partial.
    Blank strings are stored as ``None`` so that "absent" has exactly one
    representation.

    Attributes:
        street: Logradouro (street, avenue, pedestrian way)
        house_number: Número
        neighborhood: Bairro
        municipality: Município
        state: Full state name (UF), e.g. "São Paulo"
        state_abbreviation: Two-letter state code (sigla UF), e.g. "SP"
        metropolitan_region: Região metropolitana, when the geocoder reports one
        postal_code: CEP
        country: Country name, "Brasil" by default
        reference_place: Nearby landmark, if any
    """

    model_config = ConfigDict(frozen=True)

    street: Optional[str] = Field(None, description="Logradouro")
    house_number: Optional[str] = Field(None, description="Número")
    neighborhood: Optional[str] = Field(None, description="Bairro")
    municipality: Optional[str] = Field(None, description="Município")
    state: Optional[str] = Field(None, description="Full state name")
    state_abbreviation: Optional[str] = Field(
        None, description="Two-letter state abbreviation", max_length=2
    )
    metropolitan_region: Optional[str] = Field(None, description="Região metropolitana")
    postal_code: Optional[str] = Field(None, description="CEP")
    country: Optional[str] = Field("Brasil", description="Country name")
    reference_place: Optional[ReferencePlace] = Field(None, description="Nearby landmark")

    @field_validator(
        'street', 'house_number', 'neighborhood', 'municipality', 'state',
        'state_abbreviation', 'metropolitan_region', 'postal_code', 'country',
        mode='before'
    )
    @classmethod
    def normalize_blank(cls, v: Optional[str]) -> Optional[str]:
        """Strip surrounding whitespace and store blank strings as None."""
        return _blank_to_none(v)

    def full_street(self) -> str:
        """Street with house number, e.g. "Avenida Paulista, 1578"."""
        if not self.street:
            return ""
        if self.house_number:
            return f"{self.street}, {self.house_number}"
        return self.street

    def full_municipality(self) -> str:
        """Municipality with state abbreviation, e.g. "São Paulo, SP"."""
        if not self.municipality:
            return ""
        if self.state_abbreviation:
            return f"{self.municipality}, {self.state_abbreviation}"
        return self.municipality

    def full_address(self) -> str:
        """One-line address with the parts that are present."""
        parts = [
            self.full_street(),
            self.neighborhood,
            self.full_municipality(),
            self.postal_code,
        ]
        return ", ".join(part for part in parts if part)

    def is_empty(self) -> bool:
        """True when no address component was resolved."""
        return all(getattr(self, name) is None for name in ADDRESS_CONTENT_FIELDS)

    def __str__(self) -> str:
        return f"StandardizedAddress: {self.full_address() or 'Empty address'}"
