from thinking_frameworks.tools.registry import ToolName, ToolRegistry

__all__ = ["ToolName", "ToolRegistry"]
