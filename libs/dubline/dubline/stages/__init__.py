"""Processing stages."""

from dubline.stages.base import Stage
from dubline.stages.compose import ComposeStage
from dubline.stages.cue_timeline import CueTimelineStage, build_cues, plan_chunks
from dubline.stages.narration import NarrationStage
from dubline.stages.normalize import NormalizeStage

__all__ = [
    "ComposeStage",
    "CueTimelineStage",
    "NarrationStage",
    "NormalizeStage",
    "Stage",
    "build_cues",
    "plan_chunks",
]
