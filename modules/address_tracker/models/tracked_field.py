"""Tracked address fields and their notification event tags."""

from enum import Enum
from typing import Union


class TrackedField(str, Enum):
    """Standardized address fields whose changes are announced.

    Values:
        STREET: Logradouro
        NEIGHBORHOOD: Bairro
        MUNICIPALITY: Município
        METROPOLITAN_REGION: Região metropolitana
    """
    STREET = "street"
    NEIGHBORHOOD = "neighborhood"
    MUNICIPALITY = "municipality"
    METROPOLITAN_REGION = "metropolitan_region"

    @property
    def event_tag(self) -> str:
        """Event tag that display and speech consumers key on."""
        return _EVENT_TAGS[self]

    @classmethod
    def coerce(cls, field: Union[str, "TrackedField"]) -> "TrackedField":
        """Accept either a TrackedField or its string value.

        Raises:
            ValueError: If the string is not a tracked field name
        """
        if isinstance(field, cls):
            return field
        return cls(field)


_EVENT_TAGS = {
    TrackedField.STREET: "LogradouroChanged",
    TrackedField.NEIGHBORHOOD: "BairroChanged",
    TrackedField.MUNICIPALITY: "MunicipioChanged",
    TrackedField.METROPOLITAN_REGION: "RegiaoMetropolitanaChanged",
}

DEFAULT_TRACKED_FIELDS = [
    TrackedField.STREET,
    TrackedField.NEIGHBORHOOD,
    TrackedField.MUNICIPALITY,
    TrackedField.METROPOLITAN_REGION,
]
