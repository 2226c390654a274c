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

from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Business error codes with their HTTP status and default message"""

    PERMISSION_DENIED = (1001, HTTPStatus.FORBIDDEN, "Permission denied")
    RESOURCE_NOT_FOUND = (1002, HTTPStatus.NOT_FOUND, "Resource not found")
    ID_MISMATCH = (1003, HTTPStatus.CONFLICT, "Mismatch of IDs in URI path and payload")
    INVALID_PARAMETER = (1004, HTTPStatus.BAD_REQUEST, "Invalid parameter")
    DEFAULT_INDEX_SET_DELETION = (2001, HTTPStatus.BAD_REQUEST, "Default index set cannot be deleted")
    INDEX_SET_NOT_WRITABLE = (2002, HTTPStatus.BAD_REQUEST, "Index set is not writable")

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def http_status(self) -> HTTPStatus:
        return self.value[1]

    @property
    def default_message(self) -> str:
        return self.value[2]


class BusinessException(Exception):
    """Base class for errors that are reported back to the caller"""

    def __init__(self, error_code: ErrorCode, message: str = None, details: Optional[Dict[str, Any]] = None):
        self.error_code = error_code
        self.message = message or error_code.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def http_status(self) -> HTTPStatus:
        return self.error_code.http_status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.error_code.code,
            "message": self.message,
            "details": self.details,
        }


class PermissionDeniedException(BusinessException):
    def __init__(self, permission: str, resource_id: str = None):
        message = f"Not authorized to perform <{permission}>"
        if resource_id:
            message += f" on <{resource_id}>"
        super().__init__(
            ErrorCode.PERMISSION_DENIED, message, {"permission": permission, "resource_id": resource_id}
        )


class ResourceNotFoundException(BusinessException):
    """Unknown resource id.

    ``source`` records which layer failed the lookup (``registry`` or
    ``store``); it is logged and included in the details but callers see the
    same error kind either way.
    """

    def __init__(self, resource_type: str, resource_id: str = None, source: str = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.source = source
        message = f"Couldn't load {resource_type} with ID <{resource_id}>" if resource_id else f"{resource_type} not found"
        details = {"resource_type": resource_type, "resource_id": resource_id}
        if source:
            details["source"] = source
        super().__init__(ErrorCode.RESOURCE_NOT_FOUND, message, details)


class IdMismatchException(BusinessException):
    def __init__(self, path_id: str, payload_id: str):
        super().__init__(ErrorCode.ID_MISMATCH, details={"path_id": path_id, "payload_id": payload_id})


class DefaultIndexSetDeletionException(BusinessException):
    def __init__(self, index_set_id: str):
        super().__init__(
            ErrorCode.DEFAULT_INDEX_SET_DELETION,
            f"Default index set <{index_set_id}> cannot be deleted!",
            {"index_set_id": index_set_id},
        )


class IndexSetNotWritableException(BusinessException):
    def __init__(self, index_set_id: str):
        super().__init__(
            ErrorCode.INDEX_SET_NOT_WRITABLE,
            f"Index set <{index_set_id}> is not writable and cannot be made the default",
            {"index_set_id": index_set_id},
        )


class ValidationException(BusinessException):
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(ErrorCode.INVALID_PARAMETER, message, {"field": field})


def invalid_param(field: str, message: str) -> ValidationException:
    return ValidationException(field, message)
