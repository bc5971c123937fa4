"""
Pytest Configuration and Fixtures.

All fixtures run against InMemoryContentStore, so no MongoDB is required.
"""
import sys
from pathlib import Path
from types import SimpleNamespace

import numpy as np
import pytest

# Add project root to path (server.py lives there)
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from content_engine.data.memory_store import InMemoryContentStore  # noqa: E402
from content_engine.data.mock_data import MockCorpusBuilder, make_id  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: HTTP layer tests (in-memory store)")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def builder(rng):
    return MockCorpusBuilder(InMemoryContentStore(rng=rng))


@pytest.fixture
def user_id():
    return make_id(900_001)


@pytest.fixture
def other_user_id():
    return make_id(900_002)


@pytest.fixture
def corpus(builder):
    """
    Intent I1
      Theme T1
        Subject S1: Set A [c1, c2, c3], Set B [c4]
        Subject S2: Set C [c5]
      Theme T2
        Subject S3: Set D [c6]
    Intent I2
      Theme T3
        Subject S4: Set E [c7 (saveCount=50)]
    """
    b = builder
    i1 = b.intent("I1")
    t1 = b.theme(i1, "T1")
    s1 = b.subject(t1, "S1")
    set_a = b.content_set(s1, "A")
    c1 = b.capsule(set_a, "c1", save_count=1)
    c2 = b.capsule(set_a, "c2", save_count=2)
    c3 = b.capsule(set_a, "c3", save_count=3)
    set_b = b.content_set(s1, "B")
    c4 = b.capsule(set_b, "c4", save_count=4)
    s2 = b.subject(t1, "S2")
    set_c = b.content_set(s2, "C")
    c5 = b.capsule(set_c, "c5", save_count=5)
    t2 = b.theme(i1, "T2")
    s3 = b.subject(t2, "S3")
    set_d = b.content_set(s3, "D")
    c6 = b.capsule(set_d, "c6", save_count=6)

    i2 = b.intent("I2")
    t3 = b.theme(i2, "T3")
    s4 = b.subject(t3, "S4")
    set_e = b.content_set(s4, "E")
    c7 = b.capsule(set_e, "c7", save_count=50)

    return SimpleNamespace(
        store=b.store,
        builder=b,
        intents=(i1, i2),
        themes=(t1, t2, t3),
        subjects=(s1, s2, s3, s4),
        sets=(set_a, set_b, set_c, set_d, set_e),
        capsules=(c1, c2, c3, c4, c5, c6, c7),
    )
