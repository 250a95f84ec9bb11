import os

import pytest


def pytest_runtest_setup(item):
    # Qt tests need a platform plugin; opt in with PYQT_TESTS=1.
    if item.get_closest_marker("pyqt_required") and not os.getenv("PYQT_TESTS"):
        pytest.skip("PYQT_TESTS not set; skipping PyQt-dependent test")
