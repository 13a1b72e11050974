"""树形结构工具函数

对 TreeNode 森林做构建、展平、查找、过滤。

使用示例:
    from ytree.tree import build_tree_list, flatten_tree

    nodes = storage.scan(Everything())
    forest = build_tree_list(nodes)

    flat = flatten_tree(forest)
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional

from .node import NodeId, TreeNode


def sibling_sort_key(node: TreeNode):
    """同级排序：order 升序，再按 id"""
    return (node.order, node.id)


def build_tree_list(
    nodes: Iterable[TreeNode],
    root_parent_id: Optional[NodeId] = None,
    sort_key: Callable[[TreeNode], Any] = sibling_sort_key,
) -> List[TreeNode]:
    """将扁平节点列表组装为嵌套森林

    按 parent_id 分组后自顶向下挂接，线性时间。会修改传入节点的 children。

    Args:
        nodes: 扁平节点列表
        root_parent_id: 顶层节点的 parent_id（None 表示根节点）
        sort_key: 同级排序函数

    Returns:
        顶层节点列表，叶子节点的 children 为 []

    使用示例:
        nodes = query.children_by_depth(node, 0)
        children = build_tree_list(nodes, root_parent_id=node.id)
    """
    groups: Dict[Any, List[TreeNode]] = defaultdict(list)
    for node in nodes:
        node.children = []
        groups[node.parent_id].append(node)

    for members in groups.values():
        members.sort(key=sort_key)

    roots = groups.get(root_parent_id, [])
    stack = list(roots)
    while stack:
        node = stack.pop()
        node.children = groups.get(node.id, [])
        stack.extend(node.children)
    return roots


def flatten_tree(
    tree: List[TreeNode],
    keep_children: bool = False,
) -> List[TreeNode]:
    """将嵌套森林展平为先序列表

    Args:
        tree: 嵌套森林
        keep_children: 是否保留结果节点的 children，默认清空
    """
    result: List[TreeNode] = []

    for node in tree:
        item = node.copy()
        if keep_children:
            item.children = node.children
        result.append(item)
        if node.children:
            result.extend(flatten_tree(node.children, keep_children))

    return result


def find_node_in_tree(tree: List[TreeNode], target_id: NodeId) -> Optional[TreeNode]:
    """在森林中查找节点，未找到返回 None"""
    for node in tree:
        if node.id == target_id:
            return node
        found = find_node_in_tree(node.children, target_id)
        if found is not None:
            return found
    return None


def get_node_path(tree: List[TreeNode], target_id: NodeId) -> List[TreeNode]:
    """从顶层到目标节点的节点链，未找到返回空列表"""
    for node in tree:
        if node.id == target_id:
            return [node]
        path = get_node_path(node.children, target_id)
        if path:
            return [node] + path
    return []


def calculate_tree_depth(tree: List[TreeNode], _current_depth: int = 1) -> int:
    """森林的层数，空森林为 0"""
    if not tree:
        return _current_depth - 1

    max_depth = _current_depth
    for node in tree:
        if node.children:
            max_depth = max(max_depth, calculate_tree_depth(node.children, _current_depth + 1))
    return max_depth


def filter_tree(
    tree: List[TreeNode],
    predicate: Callable[[TreeNode], bool],
    keep_ancestors: bool = True,
) -> List[TreeNode]:
    """过滤森林，返回新的节点（不修改原森林）

    Args:
        predicate: 返回 True 表示保留
        keep_ancestors: 是否保留匹配节点的祖先（即使祖先本身不匹配）

    使用示例:
        visible = filter_tree(forest, lambda n: n.extra.get("is_active", False))
    """
    result: List[TreeNode] = []

    for node in tree:
        filtered_children = filter_tree(node.children, predicate, keep_ancestors) if node.children else []

        if predicate(node) or (keep_ancestors and filtered_children):
            item = node.copy()
            item.children = filtered_children
            result.append(item)

    return result


def tree_to_dicts(tree: List[TreeNode]) -> List[Dict[str, Any]]:
    """森林转为嵌套字典列表（extra 字段平铺）"""
    return [node.to_dict() for node in tree]


__all__ = [
    "sibling_sort_key",
    "build_tree_list",
    "flatten_tree",
    "find_node_in_tree",
    "get_node_path",
    "calculate_tree_depth",
    "filter_tree",
    "tree_to_dicts",
]
