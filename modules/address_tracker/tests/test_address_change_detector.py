"""
Unit tests for AddressChangeDetector and the change detection models.
"""

import pytest

from modules.address_tracker.change_detection import (
    AddressChangeDetector, ChangeSignature, FieldChange, TrackedField, normalize_field_value
)
from modules.address_tracker.models import StandardizedAddress, TrackingConfig


@pytest.fixture
def paulista():
    return StandardizedAddress(
        street="Avenida Paulista",
        neighborhood="Bela Vista",
        municipality="São Paulo",
        state_abbreviation="SP",
        metropolitan_region="Região Metropolitana de São Paulo",
    )


@pytest.fixture
def rio():
    return StandardizedAddress(
        street="Avenida Rio Branco",
        neighborhood="Centro",
        municipality="Rio de Janeiro",
        state_abbreviation="RJ",
        metropolitan_region="Região Metropolitana do Rio de Janeiro",
    )


class TestNormalizeFieldValue:
    """Test signature normalization."""

    @pytest.mark.parametrize("raw", ["São  Paulo", "sao paulo", " SAO PAULO ", "São\tPaulo"])
    def test_cosmetic_variants_share_one_value(self, raw):
        assert normalize_field_value(raw) == "sao paulo"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_none(self, raw):
        assert normalize_field_value(raw) is None

    def test_distinct_values_stay_distinct(self):
        assert normalize_field_value("Consolação") != normalize_field_value("Bela Vista")


class TestChangeSignature:
    """Test ChangeSignature equality."""

    def test_equal_when_normalized_values_match(self):
        a = ChangeSignature.of(TrackedField.MUNICIPALITY, "São Paulo")
        b = ChangeSignature.of(TrackedField.MUNICIPALITY, "SAO PAULO")
        assert a == b

    def test_field_is_part_of_signature(self):
        a = ChangeSignature.of(TrackedField.MUNICIPALITY, "São Paulo")
        b = ChangeSignature.of(TrackedField.METROPOLITAN_REGION, "São Paulo")
        assert a != b

    def test_is_empty(self):
        assert ChangeSignature.of(TrackedField.STREET, None).is_empty
        assert not ChangeSignature.of(TrackedField.STREET, "Rua Augusta").is_empty


class TestAddressChangeDetector:
    """Test per-field diffing."""

    @pytest.fixture
    def detector(self):
        return AddressChangeDetector()

    def test_reports_every_tracked_field_in_order(self, detector, paulista, rio):
        changes = detector.diff(paulista, rio)

        assert [c.field for c in changes] == [
            TrackedField.STREET, TrackedField.NEIGHBORHOOD,
            TrackedField.MUNICIPALITY, TrackedField.METROPOLITAN_REGION,
        ]
        assert all(isinstance(c, FieldChange) for c in changes)

    def test_identical_addresses_have_no_changes(self, detector, paulista):
        same = StandardizedAddress(**paulista.model_dump())

        assert detector.changed_fields(paulista, same) == []

    def test_cosmetic_difference_is_not_a_change(self, detector, paulista):
        variant = paulista.model_copy(update={"municipality": "SAO PAULO", "street": "avenida  paulista"})

        assert detector.changed_fields(paulista, variant) == []

    def test_untracked_fields_ignored(self, detector, paulista):
        moved = paulista.model_copy(update={"house_number": "900", "postal_code": "01310-100"})

        assert detector.changed_fields(paulista, moved) == []

    def test_neighborhood_change_only(self, detector, paulista):
        moved = paulista.model_copy(update={"neighborhood": "Consolação"})

        changes = detector.changed_fields(paulista, moved)

        assert len(changes) == 1
        change = changes[0]
        assert change.field is TrackedField.NEIGHBORHOOD
        assert change.previous_value == "Bela Vista"
        assert change.current_value == "Consolação"
        assert change.event_tag == "BairroChanged"
        assert not change.is_first_observation
        assert change.get_change_summary() == "neighborhood: 'Bela Vista' -> 'Consolação'"

    def test_field_becoming_absent_is_a_change(self, detector, paulista):
        cleared = paulista.model_copy(update={"metropolitan_region": None})

        changes = detector.changed_fields(paulista, cleared)

        assert [c.field for c in changes] == [TrackedField.METROPOLITAN_REGION]
        assert changes[0].current_signature.is_empty

    def test_first_observation_notifies_present_fields(self, detector):
        partial = StandardizedAddress(street="Rua Augusta", municipality="São Paulo")

        changes = detector.changed_fields(None, partial)

        assert [c.field for c in changes] == [TrackedField.STREET, TrackedField.MUNICIPALITY]
        assert all(c.is_first_observation for c in changes)
        assert all(c.previous_signature is None for c in changes)

    def test_first_observation_can_be_silenced(self, paulista):
        detector = AddressChangeDetector(notify_on_first_observation=False)

        changes = detector.diff(None, paulista)

        assert not any(c.changed for c in changes)

    def test_custom_tracked_fields_deduplicated(self, paulista, rio):
        detector = AddressChangeDetector(tracked_fields=["municipality", TrackedField.MUNICIPALITY, "street"])

        assert detector.tracked_fields == [TrackedField.MUNICIPALITY, TrackedField.STREET]
        assert [c.field for c in detector.diff(paulista, rio)] == detector.tracked_fields

    def test_unknown_tracked_field_rejected(self):
        with pytest.raises(ValueError):
            AddressChangeDetector(tracked_fields=["postal_code"])

    def test_signature_of_missing_address(self, detector):
        assert detector.signature("street", None).is_empty

    def test_from_config(self):
        config = TrackingConfig(tracked_fields=["neighborhood"], notify_on_first_observation=False)

        detector = AddressChangeDetector.from_config(config)

        assert detector.tracked_fields == [TrackedField.NEIGHBORHOOD]
        assert detector.notify_on_first_observation is False

    def test_unchanged_summary(self, detector, paulista):
        change = detector.diff(paulista, paulista)[0]
        assert change.get_change_summary() == "street unchanged ('Avenida Paulista')"
