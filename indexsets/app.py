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

from fastapi import FastAPI
from sqlmodel import SQLModel

from indexsets.config import async_engine, configure_logging
from indexsets.exceptions import BusinessException
from indexsets.views.index_sets import router as index_sets_router
from indexsets.views.utils import business_exception_handler, unhandled_exception_handler

app = FastAPI(title="Index Sets")


@app.on_event("startup")
async def on_startup():
    configure_logging()
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


app.add_exception_handler(BusinessException, business_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(index_sets_router, prefix="/api/v1")
