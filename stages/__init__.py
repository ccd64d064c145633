"""Looper stages package — probe, manifest, loop, compose pipeline."""

from stages.probe import DurationProbe
from stages.manifest import ManifestBuilder
from stages.loop import LoopStage
from stages.compose import ComposeStage
from stages.janitor import Janitor
from stages.pipeline import LoopPipeline

__all__ = [
    "DurationProbe",
    "ManifestBuilder",
    "LoopStage",
    "ComposeStage",
    "Janitor",
    "LoopPipeline",
]
