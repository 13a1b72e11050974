"""业务异常类定义

树形、存储等模块的错误都从 BusinessException 派生，携带错误代码和 HTTP 状态码，
上层 Web 框架可以直接用 to_dict() 生成响应体。

    BusinessException                 400
    ├── ResourceNotFoundException     404
    ├── ResourceConflictException     409
    └── ValidationException           422
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fastapi import status


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串比较和序列化。
    """

    # ==================== 通用错误 ====================
    BUSINESS_ERROR = "BUSINESS_ERROR"

    # ==================== 资源相关 (404) ====================
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    PARENT_NOT_FOUND = "PARENT_NOT_FOUND"
    SIBLING_NOT_FOUND = "SIBLING_NOT_FOUND"
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"

    # ==================== 冲突相关 (409) ====================
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    MOVE_CYCLE = "MOVE_CYCLE"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    # ==================== 验证相关 (422) ====================
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ALIAS = "INVALID_ALIAS"
    INVALID_DEPTH = "INVALID_DEPTH"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class BusinessException(Exception):
    """业务异常基类

    子类只需覆盖 default_message / default_code / status_code 三个类属性。

    属性:
        message: 错误消息
        code: 错误代码（ErrorCode 枚举或字符串）
        status_code: HTTP 状态码
        details: 详细错误信息列表
        extra: 额外的上下文信息（如 node_id、parent_id）

    使用示例:
        raise BusinessException("节点移动失败", node_id=12, parent_id=3)
    """

    default_message: str = "业务处理失败"
    default_code: ErrorCodeType = ErrorCode.BUSINESS_ERROR
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCodeType] = None,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or []
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式，details / extra 为深拷贝"""
        return {
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"status_code={self.status_code})"
        )


class ResourceNotFoundException(BusinessException):
    """资源不存在"""

    default_message = "资源不存在"
    default_code = ErrorCode.RESOURCE_NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictException(BusinessException):
    """目标状态与当前数据冲突，例如把节点移动到自己的子孙下"""

    default_message = "资源冲突"
    default_code = ErrorCode.RESOURCE_CONFLICT
    status_code = status.HTTP_409_CONFLICT


class ValidationException(BusinessException):
    default_message = "数据验证失败"
    default_code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
