import pytest

from tests.fakes import FakeRenderer, ScriptedModel


@pytest.fixture
def model():
    return ScriptedModel()


@pytest.fixture
def renderer():
    return FakeRenderer()
