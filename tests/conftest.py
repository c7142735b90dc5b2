import pytest

from models.options import CleaningOptions
from parsing.document import parse_html


@pytest.fixture
def only():
    """Build options with just the named flags switched on."""

    def _only(*keys: str) -> CleaningOptions:
        return CleaningOptions.all_disabled().with_enabled(keys)

    return _only


@pytest.fixture
def soup_of():
    return parse_html
