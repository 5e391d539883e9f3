from .context import ResolutionContext
from .evaluate import PlanEvaluator
from .merge import merge_fields
from .planner import MessagePlanner
from .registry import ConverterRegistry, TypePair
from .render import classify_fields, determine_render_strategy
from .resolver import FieldResolver

__all__ = [
    "ConverterRegistry",
    "FieldResolver",
    "MessagePlanner",
    "PlanEvaluator",
    "ResolutionContext",
    "TypePair",
    "classify_fields",
    "determine_render_strategy",
    "merge_fields",
]
