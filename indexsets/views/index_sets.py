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

from fastapi import APIRouter, Depends, Query, Request, Response

from indexsets.schema import view_models
from indexsets.service.index_set_service import index_set_service
from indexsets.service.permissions import PermissionCheck
from indexsets.views.auth import get_permission_checker

router = APIRouter(prefix="/system/indices/index_sets", tags=["index-sets"])


@router.get("")
async def list_index_sets_view(
    request: Request,
    skip: int = Query(0, description="The number of elements to skip (offset)."),
    limit: int = Query(0, description="The maximum number of elements to return, 0 for all."),
    is_permitted: PermissionCheck = Depends(get_permission_checker),
) -> view_models.IndexSetList:
    return await index_set_service.list_index_sets(skip, limit, is_permitted)


@router.get("/default")
async def get_default_index_set_view(
    request: Request, is_permitted: PermissionCheck = Depends(get_permission_checker)
) -> view_models.IndexSetSummary:
    return await index_set_service.get_default_index_set(is_permitted)


@router.get("/{index_set_id}")
async def get_index_set_view(
    request: Request, index_set_id: str, is_permitted: PermissionCheck = Depends(get_permission_checker)
) -> view_models.IndexSetSummary:
    return await index_set_service.get_index_set(index_set_id, is_permitted)


@router.post("")
async def create_index_set_view(
    request: Request,
    index_set: view_models.IndexSetSummary,
    is_permitted: PermissionCheck = Depends(get_permission_checker),
) -> view_models.IndexSetSummary:
    return await index_set_service.create_index_set(index_set, is_permitted)


@router.put("/{index_set_id}")
async def update_index_set_view(
    request: Request,
    index_set_id: str,
    index_set: view_models.IndexSetSummary,
    is_permitted: PermissionCheck = Depends(get_permission_checker),
) -> view_models.IndexSetSummary:
    return await index_set_service.update_index_set(index_set_id, index_set, is_permitted)


@router.put("/{index_set_id}/default")
async def set_default_index_set_view(
    request: Request, index_set_id: str, is_permitted: PermissionCheck = Depends(get_permission_checker)
) -> view_models.IndexSetSummary:
    return await index_set_service.set_default_index_set(index_set_id, is_permitted)


@router.delete("/{index_set_id}", status_code=204)
async def delete_index_set_view(
    request: Request,
    index_set_id: str,
    delete_indices: bool = Query(True, description="Also delete the indices of the index set."),
    is_permitted: PermissionCheck = Depends(get_permission_checker),
) -> Response:
    await index_set_service.delete_index_set(index_set_id, is_permitted, delete_indices=delete_indices)
    return Response(status_code=204)
