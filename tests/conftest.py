from pathlib import Path

import pytest

from lang_plane.base import RepositoryLog
from tests.test_log_common import PROVIDER_IDS, PROVIDERS


@pytest.fixture(params=PROVIDERS, ids=PROVIDER_IDS)
def log(request, tmp_path: Path):
    """A fresh repository log of every available kind."""
    provider = request.param()
    repository_log: RepositoryLog = provider.create(tmp_path)
    yield repository_log
    provider.cleanup()
