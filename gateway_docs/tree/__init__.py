"""Documentation tree (service -> version -> controller -> endpoint)."""

from .tree_builder import DocumentationTreeBuilder, TreeNode, assign_keys, tree_cache_key

__all__ = ["DocumentationTreeBuilder", "TreeNode", "assign_keys", "tree_cache_key"]
