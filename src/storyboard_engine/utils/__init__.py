"""Utility modules."""

from storyboard_engine.utils.async_utils import run_async
from storyboard_engine.utils.llm_output import parse_json_object, strip_code_fences

__all__ = ["parse_json_object", "run_async", "strip_code_fences"]
