import logging

import pytest

from gzcarve.config import GzcarveConfig
from tests.gzcarve.testing_utils import sample_payload

logger = logging.getLogger(__name__)

# Small enough that headers and payloads regularly straddle a refill.
SMALL_BUFFER_SIZE = 64


@pytest.fixture
def small_config() -> GzcarveConfig:
    return GzcarveConfig(buffer_size=SMALL_BUFFER_SIZE)


@pytest.fixture
def payload() -> bytes:
    return sample_payload(20000, seed=1)


@pytest.fixture(autouse=True)
def debug_logging(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.DEBUG, logger="gzcarve")
    yield
