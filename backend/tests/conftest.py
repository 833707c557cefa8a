import pytest

from helpers import FakeClock, FakeES


@pytest.fixture
def fake_es() -> FakeES:
    return FakeES()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
