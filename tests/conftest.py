"""Pytest configuration and shared fixtures."""

import pytest

from chunkwise.chunks import ChunkLedger
from chunkwise.placeholders import PlaceholderResolver
from chunkwise.processor import ChunkProcessor


@pytest.fixture
def ledger() -> ChunkLedger:
    """Create an empty chunk ledger."""
    return ChunkLedger()


@pytest.fixture
def resolver() -> PlaceholderResolver:
    """Create a resolver with the default placeholder pattern."""
    return PlaceholderResolver()


@pytest.fixture
def processor(ledger: ChunkLedger) -> ChunkProcessor:
    """Create a processor writing into the ledger fixture."""
    return ChunkProcessor(ledger)


@pytest.fixture
def nested_document() -> dict:
    """Create a document with placeholders at several depths."""
    return {
        "user": {
            "name": "John",
            "avatar": "$1",
            "posts": "$2",
        },
        "settings": {
            "theme": "dark",
            "notifications": "$3",
        },
    }


# Configure pytest-asyncio
def pytest_configure(config):
    """Configure pytest with asyncio settings."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
