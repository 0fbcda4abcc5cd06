"""Global test configuration for gmdb tests."""

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore structlog defaults so one test's log stream never leaks into another."""
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def reset_settings():
    """Undo any SETTINGS replacement done by the CLI callback."""
    from gmdb.core import config as config_module

    original = config_module.SETTINGS
    yield
    config_module.SETTINGS = original


@pytest.fixture
def ratings_tsv() -> bytes:
    """A small title.ratings style dump with a header row."""
    return (
        b"tconst\taverageRating\tnumVotes\n"
        b"tt0000001\t5.7\t1971\n"
        b"tt0000002\t5.8\t272\n"
    )
