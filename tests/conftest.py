import pytest

from reactree import _tracking


@pytest.fixture(autouse=True)
def _restore_reentrancy_limit():
    limit = _tracking.get_reentrancy_limit()
    yield
    _tracking.set_reentrancy_limit(limit)
