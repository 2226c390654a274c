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

import random
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def random_id():
    """Generate a random ID string"""
    return "".join(random.sample(uuid.uuid4().hex, 16))


def index_set_pk():
    return "is" + random_id()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IndexSetConfig(SQLModel, table=True):
    __tablename__ = "index_set"

    id: str = Field(default_factory=index_set_pk, primary_key=True, max_length=24)
    title: str = Field(max_length=256)
    description: Optional[str] = Field(default=None)
    index_prefix: str = Field(max_length=128, unique=True)
    shards: int = 4
    replicas: int = 0
    rotation_strategy_class: Optional[str] = Field(default=None, max_length=256)
    rotation_strategy: Optional[dict] = Field(default_factory=dict, sa_column=Column(JSON))
    retention_strategy_class: Optional[str] = Field(default=None, max_length=256)
    retention_strategy: Optional[dict] = Field(default_factory=dict, sa_column=Column(JSON))
    index_analyzer: str = Field(default="standard", max_length=64)
    index_template_name: Optional[str] = Field(default=None, max_length=256)
    index_optimization_max_num_segments: int = 1
    index_optimization_disabled: bool = False
    # Milliseconds
    field_type_refresh_interval: int = 5000
    writable: bool = True
    is_default: bool = False
    creation_date: datetime = Field(default_factory=utc_now)
