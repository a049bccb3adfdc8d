"""Data source factory: returns the live or fixture source based on config.

In fixture mode, recorded payloads are read from SD_FIXTURE_DIR.
In live mode, the Oura API is queried.
Both implement the same SleepDataSource protocol.
"""

from dashboard.adapters.protocol import SleepDataSource
from shared.config import settings


def get_sleep_source() -> SleepDataSource:
    """Return the sleep data source for the configured adapter_mode.

    Also usable as a FastAPI dependency.
    """
    if settings.adapter_mode == "live":
        from dashboard.adapters.oura_client import OuraClient

        return OuraClient()

    from dashboard.adapters.fixture_source import FixtureSleepSource

    return FixtureSleepSource(settings.fixture_dir)
