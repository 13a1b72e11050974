"""异常模块

提供业务异常基类与错误代码，树形、存储等模块的异常都从这里派生。

使用示例:
    from ytree.exceptions import BusinessException

    try:
        service.make_first_child_of(node, parent_id)
    except BusinessException as e:
        return e.to_dict()
"""

from .exceptions import (
    ErrorCode,
    ErrorCodeType,
    BusinessException,
    ResourceNotFoundException,      # 404
    ResourceConflictException,      # 409
    ValidationException,            # 422
)

__all__ = [
    "ErrorCode",
    "ErrorCodeType",
    "BusinessException",
    "ResourceNotFoundException",
    "ResourceConflictException",
    "ValidationException",
]
