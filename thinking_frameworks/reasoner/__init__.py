from thinking_frameworks.reasoner.base import BaseReasoner, STOPPED_MESSAGE
from thinking_frameworks.reasoner.cot import CoTReasoner
from thinking_frameworks.reasoner.plan_execute import PlanExecuteReasoner
from thinking_frameworks.reasoner.react import ReActReasoner
from thinking_frameworks.reasoner.rewoo import ReWOOReasoner

__all__ = [
    "BaseReasoner",
    "STOPPED_MESSAGE",
    "CoTReasoner",
    "ReActReasoner",
    "ReWOOReasoner",
    "PlanExecuteReasoner",
]
