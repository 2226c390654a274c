import threading
from typing import Iterable, List

from indexsets.index.storage import IndexStorage


class FakeIndexStorage(IndexStorage):
    def __init__(self, indices: Iterable[str] = (), failing: Iterable[str] = (), gate: threading.Event = None):
        self.indices = list(indices)
        self.failing = set(failing)
        self.gate = gate
        self.patterns: List[str] = []
        self.deleted: List[str] = []

    def list_indices(self, pattern: str) -> List[str]:
        if self.gate is not None:
            self.gate.wait(timeout=5)
        self.patterns.append(pattern)
        return list(self.indices)

    def delete_index(self, index_name: str) -> bool:
        if index_name in self.failing:
            raise RuntimeError(f"cluster refused to delete {index_name}")
        self.deleted.append(index_name)
        return True
