import pytest

from indexsets.db.models import IndexSetConfig
from indexsets.index.registry import IndexSet


@pytest.fixture
def audit_index_set():
    return IndexSet(IndexSetConfig(id="audit-set", title="Audit", index_prefix="audit"))
