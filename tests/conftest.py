import pytest
from fakes import FakeAPI, make_client, three_pages


@pytest.fixture
def fake_api() -> FakeAPI:
    api = FakeAPI()
    api.pages.update(three_pages())
    return api


@pytest.fixture
def client(fake_api):
    return make_client(fake_api)
