"""物化路径编解码

路径格式（分隔符为 "/"）:

    根节点            /0/
    根节点 1 的子节点  /0/1/
    节点 5 的子节点    /0/1/5/

"0" 是虚拟根标记，path 只记录祖先，不含节点自身 ID。
real_path 是对应的别名链，如 "root/docs/api"。
"""

from typing import List, Optional, Sequence

from .exceptions import InvalidAlias
from .node import NodeId, TreeNode


class PathCodec:
    """路径编解码器

    使用示例:
        codec = PathCodec("/")
        codec.encode([1, 5])          # "/0/1/5/"
        codec.decode("/0/1/5/")       # ["0", "1", "5"]
        codec.ancestor_ids("/0/1/5/") # [1, 5]
        codec.depth("/0/1/5/")        # 2
    """

    ROOT_MARKER = "0"

    def __init__(self, separator: str = "/", id_type: type = int):
        if not separator or separator.isalnum():
            raise ValueError(f"无效的路径分隔符: {separator!r}")
        self.separator = separator
        self.id_type = id_type

    @property
    def root_path(self) -> str:
        return f"{self.separator}{self.ROOT_MARKER}{self.separator}"

    def encode(self, ancestor_ids: Sequence[NodeId]) -> str:
        """祖先 ID 序列 -> 路径，空序列为根路径"""
        tokens = [self.ROOT_MARKER, *(str(i) for i in ancestor_ids)]
        return self._join(tokens)

    def decode(self, path: Optional[str]) -> List[str]:
        """路径 -> 片段列表（含虚拟根标记，丢弃空片段）"""
        if not path:
            return []
        return [token for token in path.split(self.separator) if token]

    def ancestor_ids(self, path: Optional[str], id_type: type = None) -> List[NodeId]:
        """路径 -> 祖先 ID 列表（不含虚拟根标记），按根到父的顺序"""
        tokens = self.decode(path)
        if tokens and tokens[0] == self.ROOT_MARKER:
            tokens = tokens[1:]
        convert = id_type or self.id_type
        return [convert(token) for token in tokens]

    def depth(self, path: Optional[str]) -> int:
        return len(self.decode(path)) - 1

    def child_path(self, path: str, node_id: NodeId) -> str:
        """节点 path + 节点 ID，即其直接子节点的 path"""
        return f"{path}{node_id}{self.separator}"

    def child_prefix(self, node: TreeNode) -> str:
        """子孙节点共同的路径前缀

        虚拟根（id 为 None 或 0）的前缀是根路径，匹配所有节点。
        """
        if node.id is None or str(node.id) == self.ROOT_MARKER:
            return self.root_path
        return self.child_path(node.path, node.id)

    def join_real_path(self, parent_real_path: Optional[str], alias: Optional[str]) -> str:
        """父节点别名链 + 分隔符 + 别名，父链为空时只返回别名"""
        alias = alias or ""
        if not parent_real_path:
            return alias
        return f"{parent_real_path}{self.separator}{alias}"

    def rebase(self, path: str, anchor_id: NodeId, new_anchor_path: str) -> str:
        """把子孙节点的路径挂到移动后的锚点下

        截取 path 中从锚点 ID 开始的部分，拼到锚点新路径之后：

            rebase("/0/1/2/7/", 2, "/0/4/")  ->  "/0/4/2/7/"

        Raises:
            ValueError: path 中不含锚点 ID
        """
        tokens = self.decode(path)
        anchor = str(anchor_id)
        try:
            index = tokens.index(anchor, 1)
        except ValueError:
            raise ValueError(f"路径 {path!r} 不包含节点 {anchor_id}")
        return self._join(self.decode(new_anchor_path) + tokens[index:])

    def rebase_real(self, real_path: Optional[str], offset: int, new_anchor_real_path: str) -> str:
        """保留 real_path 末尾 offset 段别名，拼到锚点新别名链之后"""
        if offset <= 0:
            return new_anchor_real_path
        segments = (real_path or "").split(self.separator)
        return self.separator.join([new_anchor_real_path, *segments[-offset:]])

    def validate_alias(self, alias: Optional[str]) -> None:
        if alias and self.separator in alias:
            raise InvalidAlias(alias, self.separator)

    def _join(self, tokens: Sequence[str]) -> str:
        sep = self.separator
        return sep + sep.join(tokens) + sep
