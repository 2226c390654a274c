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

from typing import Optional

from fastapi import Depends, HTTPException, Request

from indexsets.service.permissions import PermissionCheck, PermissionOracle, Principal


# The authentication layer in front of this service resolves the caller and
# writes it to request.state.principal
async def get_current_principal(request: Request) -> Principal:
    """Get current principal, raise 401 if not authenticated"""
    principal: Optional[Principal] = getattr(request.state, "principal", None)
    if principal is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return principal


async def get_permission_checker(principal: Principal = Depends(get_current_principal)) -> PermissionCheck:
    return PermissionOracle(principal).is_permitted
