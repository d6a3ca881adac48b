"""Tool packages — each one splits pure ``logic`` from its ``BaseTool`` wrapper."""
