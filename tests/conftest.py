import pytest

from vigil import ManualExecutor, Runtime, use_runtime


@pytest.fixture
def runtime():
    """A fresh runtime with a hand-pumped executor, current for the test."""
    rt = Runtime(executor=ManualExecutor(), name="test")
    with use_runtime(rt):
        yield rt
