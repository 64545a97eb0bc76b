import pytest

from mptower import DefaultContext, local_context


# Each test runs in a fresh copy of the default context
@pytest.fixture
def context():
    with local_context(DefaultContext) as context:
        yield context
