'''
Impure tests load the xontrib into a live xonsh session, which changes
process-wide state. They run one at a time, with nothing else running.
'''

import pytest


@pytest.fixture(autouse=True)
def exclusive_session(test_lock):
    with test_lock:
        yield
