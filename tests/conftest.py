import pytest
from click.testing import CliRunner

from org_outline import Arena


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Provides a reusable Click CLI runner."""
    return CliRunner()


@pytest.fixture()
def arena() -> Arena:
    """Provides a fresh arena per test."""
    return Arena()
