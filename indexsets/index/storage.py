# Copyright 2025 ApeCloud, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from elasticsearch import Elasticsearch, NotFoundError

from indexsets.config import settings

logger = logging.getLogger(__name__)


class IndexStorage(ABC):
    """Minimal view of the storage backend needed to retire index sets"""

    @abstractmethod
    def list_indices(self, pattern: str) -> List[str]:
        """Return the names of all indices matching a wildcard pattern"""

    @abstractmethod
    def delete_index(self, index_name: str) -> bool:
        """Delete one index; False if it did not exist"""


class ElasticsearchIndexStorage(IndexStorage):
    def __init__(self, client: Optional[Elasticsearch] = None, hosts: List[str] = None, request_timeout: int = None):
        self._client = client
        self._hosts = hosts or settings.elasticsearch_hosts
        self._request_timeout = request_timeout or settings.elasticsearch_request_timeout

    @property
    def client(self) -> Elasticsearch:
        if self._client is None:
            self._client = Elasticsearch(self._hosts, request_timeout=self._request_timeout)
        return self._client

    def list_indices(self, pattern: str) -> List[str]:
        response = self.client.indices.get(index=pattern, expand_wildcards="open,closed", allow_no_indices=True)
        return sorted(response.keys())

    def delete_index(self, index_name: str) -> bool:
        try:
            self.client.indices.delete(index=index_name)
            return True
        except NotFoundError:
            logger.info(f"Index {index_name} is already gone")
            return False
