import pytest

from zonecell.pipeline.run_tracker import RunTracker
from tests.helpers.fake_graph import InMemoryGraphStore


@pytest.fixture
def tracker(temp_dir):
    t = RunTracker(temp_dir / "tracker.db")
    yield t
    t.close()


@pytest.fixture
def pipeline_config(make_config, temp_dir):
    """Single-threaded config rooted in the test directory."""
    return make_config(base_dir=str(temp_dir), max_workers=1, batch_size=50)


@pytest.fixture
def graph_store():
    return InMemoryGraphStore()
