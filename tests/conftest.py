from __future__ import annotations

import logging
from typing import Iterator

import pytest

from tests._fixtures.pipeline import PipelineHarness, make_harness


@pytest.fixture
def harness() -> PipelineHarness:
    """Pipeline wired to an in-memory repository and scripted model replies."""
    return make_harness()


@pytest.fixture(autouse=True)
def _reset_port2monad_logger() -> Iterator[None]:
    """Drop handlers installed by CLI runs so later tests do not write to closed streams."""
    yield
    logger = logging.getLogger("port2monad")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
