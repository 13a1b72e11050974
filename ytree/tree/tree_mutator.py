"""树形结构写操作

make_root / make_first_child_of / make_last_child_of / make_previous_sibling_of /
make_next_sibling_of / update_node / rebuild

每个操作都是一个完整的事务：同级移位、子孙路径重写、节点自身写入一起提交，
任何一步失败全部回滚。前置条件（父节点存在、不成环、记录未过期）在第一次
写入之前检查。

子孙路径不做字符串替换，而是截取锚点之后的 ID 链重新拼接：

    移动前  A.path = /0/1/      D.path = /0/1/2/7/     (A.id = 2)
    A 移到 B(id=3) 下           A.path = /0/1/3/
    移动后                      D.path = /0/1/3/2/7/
"""

from collections import defaultdict, deque
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ytree.config import TreeSettings
from ytree.log import get_logger
from ytree.storage.predicates import (
    Everything,
    FieldCompare,
    ParentEquals,
    PathPrefix,
    Predicate,
    all_of,
)

from .exceptions import MoveCycle, NodeNotFound, ParentNotFound, SiblingNotFound, StaleNode
from .node import NodeId, NodeState, TreeNode
from .path_codec import PathCodec
from .tree_query import TreeQuery

if TYPE_CHECKING:
    from ytree.storage.base import TreeStorage

logger = get_logger("ytree.tree.mutator")


class SiblingPosition(str, Enum):
    """相对兄弟节点的位置"""

    BEFORE = "before"
    AFTER = "after"


class TreeMutator:
    """树形结构写操作

    Args:
        storage: 存储适配器
        codec: 路径编解码器
        query: 树形查询（环检测使用）
        settings: 树形配置

    节点按值传入：已持久化的节点以存储中的记录为准，调用方只提供 id、
    新的 alias（以及 update_node 中新的 parent_id / order）。
    """

    def __init__(
        self,
        storage: "TreeStorage",
        codec: PathCodec,
        query: TreeQuery,
        settings: TreeSettings,
    ):
        self.storage = storage
        self.codec = codec
        self.query = query
        self.settings = settings

    # ==================== 根节点 ====================

    def make_root(self, node: TreeNode) -> TreeNode:
        """设为根节点

        order 为现有根节点最大 order + 1（没有根节点时为 0），
        别名为空时使用 default_root_alias。
        """
        with self.storage.transaction("make_root"):
            current = self._load_current(node)
            alias = node.alias or self.settings.default_root_alias
            self.codec.validate_alias(alias)

            max_order = self.storage.max_field(
                self._exclude(ParentEquals(None), current), "order"
            )
            root_path = self.codec.root_path
            values = {
                "parent_id": None,
                "path": root_path,
                "real_path": alias,
                "depth": 0,
                "order": 0 if max_order is None else max_order + 1,
                "alias": alias,
            }

            if current is not None:
                self._enter_moving(current)
                self._rebase_descendants(current, root_path, alias)
            return self._persist(node, current, values)

    # ==================== 子节点 ====================

    def make_first_child_of(self, node: TreeNode, parent_id: NodeId) -> TreeNode:
        """设为 parent_id 的第一个子节点，原有子节点 order 全部 +1"""
        with self.storage.transaction("make_first_child_of"):
            current = self._load_current(node)
            parent = self._fetch_parent(parent_id)
            self._guard_cycle(current, parent)
            self.codec.validate_alias(node.alias)

            shifted = self.storage.increment_field(
                self._exclude(ParentEquals(parent.id), current), "order", 1
            )
            logger.debug(f"父节点 {parent.id} 下 {shifted} 个子节点后移")

            return self._attach(node, current, parent, order=0)

    def make_last_child_of(self, node: TreeNode, parent_id: NodeId) -> TreeNode:
        """设为 parent_id 的最后一个子节点，不移动其他节点"""
        with self.storage.transaction("make_last_child_of"):
            current = self._load_current(node)
            parent = self._fetch_parent(parent_id)
            self._guard_cycle(current, parent)
            self.codec.validate_alias(node.alias)

            max_order = self.storage.max_field(
                self._exclude(ParentEquals(parent.id), current), "order"
            )
            order = 0 if max_order is None else max_order + 1
            return self._attach(node, current, parent, order=order)

    # ==================== 兄弟节点 ====================

    def make_previous_sibling_of(self, node: TreeNode, sibling_id: NodeId) -> TreeNode:
        return self.process_sibling_of(node, sibling_id, SiblingPosition.BEFORE)

    def make_next_sibling_of(self, node: TreeNode, sibling_id: NodeId) -> TreeNode:
        return self.process_sibling_of(node, sibling_id, SiblingPosition.AFTER)

    def process_sibling_of(
        self,
        node: TreeNode,
        sibling_id: NodeId,
        mode: SiblingPosition,
    ) -> TreeNode:
        """放到 sibling_id 之前或之后，与其共享同一个父节点

        Raises:
            SiblingNotFound: 兄弟节点不存在
            MoveCycle: 兄弟节点是 node 自身或其子孙
        """
        mode = SiblingPosition(mode)
        with self.storage.transaction(f"make_{mode.value}_sibling"):
            current = self._load_current(node)
            sibling = self.storage.find_by_id(sibling_id)
            if sibling is None:
                raise SiblingNotFound(sibling_id)
            self._guard_cycle(current, sibling)

            op = ">=" if mode == SiblingPosition.BEFORE else ">"
            shift = all_of(
                ParentEquals(sibling.parent_id),
                FieldCompare("order", op, sibling.order),
            )
            shifted = self.storage.increment_field(self._exclude(shift, current), "order", 1)
            logger.debug(f"兄弟节点 {sibling.id} {mode.value}: {shifted} 个节点后移")

            order = sibling.order + (1 if mode == SiblingPosition.AFTER else 0)

            if sibling.parent_id is None:
                alias = node.alias or self.settings.default_root_alias
                self.codec.validate_alias(alias)
                real_path = alias
            else:
                alias = node.alias
                self.codec.validate_alias(alias)
                parent = self._fetch_parent(sibling.parent_id)
                real_path = self.codec.join_real_path(parent.real_path, alias)

            values = {
                "parent_id": sibling.parent_id,
                "path": sibling.path,
                "real_path": real_path,
                "depth": self.codec.depth(sibling.path),
                "order": order,
                "alias": alias,
            }
            if current is not None:
                self._enter_moving(current)
                self._rebase_descendants(current, sibling.path, real_path)
            return self._persist(node, current, values)

    # ==================== 外部修改后重新定位 ====================

    def update_node(self, node: TreeNode) -> TreeNode:
        """调用方直接修改了 parent_id / alias / order 后，重新计算路径字段

        同级中 order >= node.order 的其他节点后移一位，节点自身先写入，
        再把新的 path / real_path / depth 传播到全部子孙（子孙的 order 不变）。

        Raises:
            NodeNotFound: 节点未持久化或不存在
            ParentNotFound: parent_id 指向不存在的节点
            MoveCycle: 新父节点是自身或其子孙
        """
        if node.id is None:
            raise NodeNotFound(None, "节点尚未持久化，无法更新")

        with self.storage.transaction("update_node"):
            # 路径由 parent_id 重新计算，调用方持有的旧 path 不作为前置条件
            current = self._load_current(node, check_path=False)

            if node.parent_id is None:
                alias = node.alias or self.settings.default_root_alias
                self.codec.validate_alias(alias)
                new_path = self.codec.root_path
                new_real = alias
            else:
                alias = node.alias
                self.codec.validate_alias(alias)
                parent = self._fetch_parent(node.parent_id)
                self._guard_cycle(current, parent)
                new_path = self.codec.child_prefix(parent)
                new_real = self.codec.join_real_path(parent.real_path, alias)

            shift = all_of(
                ParentEquals(node.parent_id),
                FieldCompare("order", ">=", node.order),
            )
            shifted = self.storage.increment_field(self._exclude(shift, current), "order", 1)
            logger.debug(f"节点 {current.id} 重新定位: {shifted} 个同级节点后移")

            self._enter_moving(current)
            self.storage.update_fields(current.id, {
                "parent_id": node.parent_id,
                "path": new_path,
                "real_path": new_real,
                "depth": self.codec.depth(new_path),
                "order": node.order,
                "alias": alias,
            })
            self._rebase_descendants(current, new_path, new_real)
            logger.debug(f"节点 {current.id} 状态: {NodeState.MOVING.value} -> {NodeState.POSITIONED.value}")
            return self.storage.find_by_id(current.id)

    # ==================== 重建 ====================

    def rebuild(self) -> int:
        """按 parent_id 关系重新计算全部节点的 path / real_path / depth

        从根节点开始广度优先遍历，order 保持不变。
        无法从根节点到达的节点（孤儿或环）记录警告并跳过。

        Returns:
            int: 实际修改的节点数
        """
        with self.storage.transaction("rebuild"):
            nodes = self.storage.scan(Everything(), order_by=("depth", "order", "id"))
            by_parent: Dict[Any, List[TreeNode]] = defaultdict(list)
            for item in nodes:
                by_parent[item.parent_id].append(item)

            changed = 0
            visited = set()
            queue: deque = deque()
            for root in by_parent.get(None, []):
                alias = root.alias or self.settings.default_root_alias
                queue.append((root, self.codec.root_path, alias))

            while queue:
                item, path, real_path = queue.popleft()
                if item.id in visited:
                    continue
                visited.add(item.id)

                depth = self.codec.depth(path)
                if (item.path, item.real_path, item.depth) != (path, real_path, depth):
                    self.storage.update_fields(item.id, {
                        "path": path,
                        "real_path": real_path,
                        "depth": depth,
                    })
                    changed += 1

                child_path = self.codec.child_path(path, item.id)
                for child in by_parent.get(item.id, []):
                    queue.append((child, child_path, self.codec.join_real_path(real_path, child.alias)))

            for item in nodes:
                if item.id not in visited:
                    logger.warning(f"节点 {item.id} 无法从根节点到达（parent_id={item.parent_id}），已跳过")

            logger.debug(f"重建完成: {changed}/{len(nodes)} 个节点已修改")
            return changed

    # ==================== 内部方法 ====================

    def _load_current(self, node: TreeNode, check_path: bool = True) -> Optional[TreeNode]:
        """读取已持久化节点在存储中的记录，未持久化返回 None"""
        if node.id is None:
            return None

        current = self.storage.find_by_id(node.id)
        if current is None:
            raise NodeNotFound(node.id)
        if check_path and self.settings.check_stale and node.path is not None and node.path != current.path:
            raise StaleNode(node.id, node.path, current.path)
        return current

    def _fetch_parent(self, parent_id: NodeId) -> TreeNode:
        parent = self.storage.find_by_id(parent_id)
        if parent is None:
            raise ParentNotFound(parent_id)
        return parent

    def _guard_cycle(self, current: Optional[TreeNode], target: TreeNode) -> None:
        """target 不能是 current 自身或其子孙"""
        if current is None:
            return
        if target.id == current.id or self.query.is_ancestor_of(current, target):
            raise MoveCycle(current.id, target.id)

    @staticmethod
    def _exclude(predicate: Predicate, current: Optional[TreeNode]) -> Predicate:
        if current is None:
            return predicate
        return all_of(predicate, FieldCompare("id", "!=", current.id))

    def _enter_moving(self, current: TreeNode) -> None:
        logger.debug(f"节点 {current.id} 状态: {NodeState.POSITIONED.value} -> {NodeState.MOVING.value}")

    def _attach(
        self,
        node: TreeNode,
        current: Optional[TreeNode],
        parent: TreeNode,
        order: int,
    ) -> TreeNode:
        """挂到 parent 下的指定位置"""
        new_path = self.codec.child_prefix(parent)
        new_real = self.codec.join_real_path(parent.real_path, node.alias)
        values = {
            "parent_id": parent.id,
            "path": new_path,
            "real_path": new_real,
            "depth": self.codec.depth(new_path),
            "order": order,
            "alias": node.alias,
        }
        if current is not None:
            self._enter_moving(current)
            self._rebase_descendants(current, new_path, new_real)
        return self._persist(node, current, values)

    def _rebase_descendants(self, current: TreeNode, new_path: str, new_real_path: str) -> int:
        """按节点移动前的记录重写全部子孙的 path / real_path / depth"""
        descendants = self.storage.scan(
            PathPrefix(self.codec.child_prefix(current)),
            order_by=("depth",),
        )
        base_depth = self.codec.depth(current.path)
        rewritten = 0
        for item in descendants:
            path = self.codec.rebase(item.path, current.id, new_path)
            offset = self.codec.depth(item.path) - base_depth
            real_path = self.codec.rebase_real(item.real_path, offset, new_real_path)
            depth = self.codec.depth(path)
            if (path, real_path, depth) == (item.path, item.real_path, item.depth):
                continue
            self.storage.update_fields(item.id, {
                "path": path,
                "real_path": real_path,
                "depth": depth,
            })
            rewritten += 1

        if descendants:
            logger.debug(f"节点 {current.id}: 重写 {rewritten}/{len(descendants)} 个子孙节点")
        return rewritten

    def _persist(
        self,
        node: TreeNode,
        current: Optional[TreeNode],
        values: Dict[str, Any],
    ) -> TreeNode:
        """写入节点并从存储中读回"""
        if current is None:
            record = node.copy()
            for name, value in values.items():
                setattr(record, name, value)
            node_id = self.storage.insert(record)
            logger.debug(f"节点 {node_id} 状态: {NodeState.DETACHED.value} -> {NodeState.POSITIONED.value}")
        else:
            node_id = current.id
            self.storage.update_fields(node_id, values)
            logger.debug(f"节点 {node_id} 状态: {NodeState.MOVING.value} -> {NodeState.POSITIONED.value}")

        return self.storage.find_by_id(node_id)


__all__ = ["SiblingPosition", "TreeMutator"]
