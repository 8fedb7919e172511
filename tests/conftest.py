from __future__ import annotations

import pytest
from fakes import SleepRecorder

from fleetpairs.config import FleetPairsConfig, RetryPolicy, SamsaraConfig, SkybitzConfig


@pytest.fixture
def config() -> FleetPairsConfig:
    return FleetPairsConfig(
        samsara=SamsaraConfig(token="samsara-token", base_url="https://samsara.test"),
        skybitz=SkybitzConfig(username="sky-user", password="sky-pass", base_url="https://skybitz.test"),
        retry=RetryPolicy(attempts=3, backoff_seconds=0.5),
    )


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
