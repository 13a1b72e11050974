"""树形操作异常

所有树形错误都继承自 TreeError，同时继承对应的 HTTP 语义基类：

    TreeError
    ├── ParentNotFound / SiblingNotFound / NodeNotFound / ModelNotFound  (404)
    ├── MoveCycle / StaleNode                                            (409)
    └── InvalidAlias / InvalidDepth                                      (422)

所有错误都在第一次写入之前检查，抛出时数据保持不变。
"""

from typing import Any, Optional

from ytree.exceptions import (
    BusinessException,
    ErrorCode,
    ResourceConflictException,
    ResourceNotFoundException,
    ValidationException,
)


class TreeError(BusinessException):
    """树形操作错误基类"""
    pass


class ParentNotFound(ResourceNotFoundException, TreeError):
    """指定的父节点不存在"""

    def __init__(self, parent_id: Any, message: Optional[str] = None):
        self.parent_id = parent_id
        super().__init__(
            message or f"父节点不存在: {parent_id}",
            code=ErrorCode.PARENT_NOT_FOUND,
            parent_id=parent_id,
        )


class SiblingNotFound(ResourceNotFoundException, TreeError):
    """指定的兄弟节点不存在"""

    def __init__(self, sibling_id: Any, message: Optional[str] = None):
        self.sibling_id = sibling_id
        super().__init__(
            message or f"兄弟节点不存在: {sibling_id}",
            code=ErrorCode.SIBLING_NOT_FOUND,
            sibling_id=sibling_id,
        )


class NodeNotFound(ResourceNotFoundException, TreeError):
    """节点在存储中不存在"""

    def __init__(self, node_id: Any, message: Optional[str] = None):
        self.node_id = node_id
        super().__init__(
            message or f"节点不存在: {node_id}",
            code=ErrorCode.NODE_NOT_FOUND,
            node_id=node_id,
        )


class ModelNotFound(ResourceNotFoundException, TreeError):
    """对尚未持久化的节点调用了祖先/子孙/叶子判断"""

    def __init__(self, message: str = "节点尚未持久化"):
        super().__init__(message, code=ErrorCode.MODEL_NOT_FOUND)


class MoveCycle(ResourceConflictException, TreeError):
    """把节点移动到自身或自身的子孙节点下"""

    def __init__(self, node_id: Any, target_id: Any, message: Optional[str] = None):
        self.node_id = node_id
        self.target_id = target_id
        super().__init__(
            message or f"不能将节点 {node_id} 移动到自身或其子孙节点 {target_id} 下",
            code=ErrorCode.MOVE_CYCLE,
            node_id=node_id,
            target_id=target_id,
        )


MoveException = MoveCycle


class StaleNode(ResourceConflictException, TreeError):
    """调用方持有的节点路径与存储中不一致（已被其他操作移动）"""

    def __init__(self, node_id: Any, expected_path: str, actual_path: str):
        self.node_id = node_id
        self.expected_path = expected_path
        self.actual_path = actual_path
        super().__init__(
            f"节点 {node_id} 已被修改，请重新加载后再操作",
            code=ErrorCode.VERSION_CONFLICT,
            details=[f"持有路径: {expected_path}", f"当前路径: {actual_path}"],
            node_id=node_id,
        )


class InvalidAlias(ValidationException, TreeError):
    """别名包含路径分隔符"""

    def __init__(self, alias: str, separator: str):
        self.alias = alias
        super().__init__(
            f"别名不能包含路径分隔符 {separator!r}: {alias!r}",
            code=ErrorCode.INVALID_ALIAS,
            alias=alias,
        )


class InvalidDepth(ValidationException, TreeError):
    """深度参数为负数"""

    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(
            f"深度不能为负数: {depth}",
            code=ErrorCode.INVALID_DEPTH,
            depth=depth,
        )


__all__ = [
    "TreeError",
    "ParentNotFound",
    "SiblingNotFound",
    "NodeNotFound",
    "ModelNotFound",
    "MoveCycle",
    "MoveException",
    "StaleNode",
    "InvalidAlias",
    "InvalidDepth",
]
