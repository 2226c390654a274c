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

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

# (permission, resource_id) -> allowed
PermissionCheck = Callable[[str, Optional[str]], bool]

WILDCARD = "*"


class IndexSetPermissions:
    READ = "indexsets:read"
    CREATE = "indexsets:create"
    EDIT = "indexsets:edit"
    DELETE = "indexsets:delete"


class Role(str, Enum):
    ADMIN = "admin"
    RW = "rw"
    RO = "ro"


ROLE_PERMISSIONS: Dict[Role, List[str]] = {
    Role.ADMIN: [WILDCARD],
    Role.RW: [IndexSetPermissions.READ, IndexSetPermissions.CREATE, IndexSetPermissions.EDIT],
    Role.RO: [IndexSetPermissions.READ],
}


class WildcardPermission:
    """Colon separated permission string with wildcard and list parts.

    ``indexsets:read`` implies ``indexsets:read:<any id>``; ``indexsets:*``
    implies every index set action; ``indexsets:read,edit:abc`` implies read
    and edit on ``abc`` only. Matching is case sensitive.
    """

    def __init__(self, permission: str):
        if not permission or not permission.strip():
            raise ValueError("Permission string must not be empty")
        self.permission = permission.strip()
        self.parts: Tuple[FrozenSet[str], ...] = tuple(
            frozenset(token.strip() for token in part.split(",") if token.strip()) for part in self.permission.split(":")
        )
        if any(not part for part in self.parts):
            raise ValueError(f"Invalid permission string: {permission}")

    def implies(self, other: "WildcardPermission") -> bool:
        for i, other_part in enumerate(other.parts):
            # A shorter permission implies everything below it
            if i >= len(self.parts):
                return True
            part = self.parts[i]
            if WILDCARD not in part and not other_part <= part:
                return False

        # Extra parts on our side only match if they are wildcards
        return all(WILDCARD in part for part in self.parts[len(other.parts):])

    def __repr__(self) -> str:
        return f"WildcardPermission({self.permission!r})"

    @classmethod
    def on_resource(cls, permission: str, resource_id: str) -> "WildcardPermission":
        """``permission`` narrowed to one resource.

        The id becomes a single literal part; separators inside it are not
        interpreted, so ``abc:x`` is never matched by a grant on ``abc``.
        """
        wanted = cls(permission)
        wanted.permission = f"{wanted.permission}:{resource_id}"
        wanted.parts = wanted.parts + (frozenset([resource_id]),)
        return wanted


@dataclass
class Principal:
    """An authenticated caller as handed over by the authentication layer"""

    username: str
    role: Role = Role.RO
    permissions: List[str] = field(default_factory=list)


class PermissionOracle:
    """Answers permission questions for one principal"""

    def __init__(self, principal: Principal):
        self.principal = principal
        grants = ROLE_PERMISSIONS.get(principal.role, []) + list(principal.permissions)
        self._grants = [WildcardPermission(grant) for grant in grants]

    def is_permitted(self, permission: str, resource_id: Optional[str] = None) -> bool:
        if resource_id is None:
            wanted = WildcardPermission(permission)
        else:
            wanted = WildcardPermission.on_resource(permission, resource_id)
        return any(grant.implies(wanted) for grant in self._grants)

    __call__ = is_permitted
