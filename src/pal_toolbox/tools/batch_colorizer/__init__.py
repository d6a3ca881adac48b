"""Batch colorizer tool — palette x image cross product and HTML report."""

from pal_toolbox.tools.batch_colorizer.tool import BatchColorizerTool

__all__ = ["BatchColorizerTool"]
