"""
Integration tests for the address tracking pipeline.

Wires configuration, gate, geocoder, extractor, coordinator, registry and hub
together the way an application would, and walks a short journey through
São Paulo and on to Rio de Janeiro.
"""

import asyncio
from pathlib import Path

import pytest
from unittest.mock import Mock

from src.config.config_loader import ConfigLoader
from modules.address_tracker.change_detection import TrackedField
from modules.address_tracker.extraction import AddressExtractor, CachingAddressExtractor
from modules.address_tracker.models import PositionValue, TrackingConfig
from modules.address_tracker.notifications import LoggingChangeSubscriber
from modules.address_tracker.processor import TrackingSession, FixOutcome

CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"

RESPONSES = {
    (-23.5614, -46.6559): {"address": {
        "road": "Avenida Paulista", "suburb": "Bela Vista", "city": "São Paulo",
        "county": "Região Metropolitana de São Paulo", "ISO3166-2-lvl4": "BR-SP",
    }},
    (-23.5610, -46.6559): {"address": {
        "road": "Avenida Paulista", "suburb": "Bela Vista", "city": "São Paulo",
        "county": "Região Metropolitana de São Paulo", "ISO3166-2-lvl4": "BR-SP",
    }},
    (-23.5580, -46.6520): {"address": {
        "road": "Rua Frei Caneca", "suburb": "Consolação", "city": "SAO PAULO",
        "county": "Região Metropolitana de São Paulo", "ISO3166-2-lvl4": "BR-SP",
    }},
    (-22.9068, -43.1729): {"address": {
        "road": "Avenida Rio Branco", "suburb": "Centro", "city": "Rio de Janeiro",
        "county": "Região Metropolitana do Rio de Janeiro", "ISO3166-2-lvl4": "BR-RJ",
    }},
}


class FakeNominatim:
    """Async reverse geocoder answering from canned responses."""

    def __init__(self):
        self.extractor = CachingAddressExtractor(AddressExtractor())
        self.calls = 0

    async def __call__(self, position):
        self.calls += 1
        await asyncio.sleep(0)
        return self.extractor.extract(RESPONSES[(position.latitude, position.longitude)])


@pytest.fixture
def config():
    loader = ConfigLoader(str(CONFIG_DIR))
    try:
        yield TrackingConfig.from_config_loader(loader, "development")
    finally:
        loader.clear_cache()


def fix(latitude, longitude, timestamp):
    return PositionValue(latitude=latitude, longitude=longitude, accuracy=10, timestamp=timestamp)


class TestAddressTrackingIntegration:
    """End-to-end journey through the tracking pipeline."""

    def test_journey(self, config):
        geocoder = FakeNominatim()
        session = TrackingSession.from_config(config, geocoder)

        narrator = LoggingChangeSubscriber()
        display = Mock()
        municipality_handler = Mock()
        session.coordinator.hub.subscribe_stateful(narrator)
        session.coordinator.hub.subscribe_callback(display)
        session.coordinator.register_field_callback(TrackedField.MUNICIPALITY, municipality_handler)

        journey = [
            fix(-23.5614, -46.6559, 0),          # first fix
            fix(-23.5613, -46.6559, 5_000),      # ~11 m after 5 s: rejected
            fix(-23.5610, -46.6559, 40_000),     # 40 s later: accepted, same address
            fix(-23.5580, -46.6520, 45_000),     # ~530 m: new street and neighborhood
            fix(-22.9068, -43.1729, 3_600_000),  # Rio de Janeiro
        ]

        async def drive():
            outcomes = [await session.submit(position) for position in journey]
            await session.drain()
            return outcomes

        outcomes = asyncio.run(drive())

        assert outcomes == [
            FixOutcome.PROCESSED, FixOutcome.REJECTED, FixOutcome.PROCESSED,
            FixOutcome.PROCESSED, FixOutcome.PROCESSED,
        ]
        assert geocoder.calls == 4

        # "SAO PAULO" normalizes to the same municipality as "São Paulo"
        assert municipality_handler.call_count == 2
        first, second = [c.args[0] for c in municipality_handler.call_args_list]
        assert first.is_first_observation
        assert second.previous_value == "SAO PAULO"
        assert second.current_value == "Rio de Janeiro"

        assert narrator.announcements == [
            "Você está na Avenida Paulista",
            "Você entrou no bairro Bela Vista",
            "Bem-vindo a São Paulo",
            "Você está na Região Metropolitana de São Paulo",
            "Você está na Rua Frei Caneca",
            "Você entrou no bairro Consolação",
            "Você está na Avenida Rio Branco",
            "Você entrou no bairro Centro",
            "Bem-vindo a Rio de Janeiro",
            "Você está na Região Metropolitana do Rio de Janeiro",
        ]
        assert display.call_count == len(narrator.announcements)

        current = session.coordinator.current_address()
        assert current.full_municipality() == "Rio de Janeiro, RJ"
        assert session.coordinator.current_position is journey[-1]

    def test_repeated_content_reuses_standardized_address(self, config):
        geocoder = FakeNominatim()
        session = TrackingSession.from_config(config, geocoder)

        async def drive():
            await session.submit(fix(-23.5614, -46.6559, 0))
            first = session.coordinator.current_address()
            await session.submit(fix(-23.5610, -46.6559, 40_000))
            return first, session.coordinator.current_address()

        first, second = asyncio.run(drive())

        assert first is second
        assert geocoder.extractor.store.stats.hits == 1
