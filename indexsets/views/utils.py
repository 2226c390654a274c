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
from http import HTTPStatus

from fastapi import Request
from fastapi.responses import JSONResponse

from indexsets.exceptions import BusinessException

logger = logging.getLogger(__name__)


def fail(status: HTTPStatus, message: str, code: int = None) -> JSONResponse:
    return JSONResponse(
        status_code=int(status), content={"code": code if code is not None else int(status), "message": message}
    )


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} rejected with {int(exc.http_status)}: {exc.message}")
    return JSONResponse(status_code=int(exc.http_status), content=exc.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    return fail(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal server error")
