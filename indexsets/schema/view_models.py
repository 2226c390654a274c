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

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

INDEX_PREFIX_PATTERN = r"^[a-z0-9][a-z0-9_+-]*$"
# Bounded by the id column length
INDEX_SET_ID_PATTERN = r"^[A-Za-z0-9_-]{1,24}$"


class IndexSetSummary(BaseModel):
    """Index set as exchanged with API callers.

    ``id`` is absent when creating. ``default`` and ``creation_date`` are
    managed by the server and ignored on input.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    title: str = Field(min_length=1, max_length=256)
    description: Optional[str] = None
    default: bool = False
    writable: bool = True
    index_prefix: str = Field(min_length=1, max_length=128, pattern=INDEX_PREFIX_PATTERN)
    shards: int = Field(ge=1)
    replicas: int = Field(ge=0)
    rotation_strategy_class: Optional[str] = None
    rotation_strategy: Dict[str, Any] = Field(default_factory=dict)
    retention_strategy_class: Optional[str] = None
    retention_strategy: Dict[str, Any] = Field(default_factory=dict)
    creation_date: Optional[datetime] = None
    index_analyzer: str = Field(default="standard", min_length=1)
    index_template_name: Optional[str] = None
    index_optimization_max_num_segments: int = Field(default=1, ge=1)
    index_optimization_disabled: bool = False
    field_type_refresh_interval: int = Field(default=5000, ge=0)


class IndexSetList(BaseModel):
    count: int
    items: List[IndexSetSummary]
