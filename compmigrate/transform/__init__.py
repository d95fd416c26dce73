"""Logic transformation from component descriptors to migration plans."""

from .plan import MAPPING_TARGETS, RENDER_SUBJECT, BehaviorMapping, TransformationPlan
from .rules import DEFAULT_RULES, MappingRule
from .transformer import LogicTransformer

__all__ = [
    "BehaviorMapping",
    "DEFAULT_RULES",
    "LogicTransformer",
    "MAPPING_TARGETS",
    "MappingRule",
    "RENDER_SUBJECT",
    "TransformationPlan",
]
