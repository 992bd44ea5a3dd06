"""Shared pytest configuration."""

import pytest
from mfl.colors import set_colors
from mfl.errors import clear_trace, disable_trace


@pytest.fixture(autouse=True)
def plain_output():
    """Compare output without ANSI colour codes or a leftover derivation trace."""
    set_colors(False)
    yield
    disable_trace()
    clear_trace()
