from .workflow_nodes import LiquidationNodes, NodeDeps, merge_extraction

__all__ = ["LiquidationNodes", "NodeDeps", "merge_extraction"]
