import pytest

from tests.fakes import FakeComposer, FakeTarget


@pytest.fixture
def target() -> FakeTarget:
    return FakeTarget()


@pytest.fixture
def composer() -> FakeComposer:
    return FakeComposer()
