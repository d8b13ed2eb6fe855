"""Stage abstractions for pipeline execution."""

from __future__ import annotations

from abc import ABC, abstractmethod

from dubline.pipeline.context import RenderContext
from dubline.storage.artifact_store import RequestArtifacts


class Stage(ABC):
    """One step of the render pipeline."""

    name: str

    @abstractmethod
    async def execute(self, context: RenderContext, artifacts: RequestArtifacts) -> RenderContext:
        """Run the stage and return an updated copy of the context."""

    @abstractmethod
    def validate_input(self, context: RenderContext) -> bool:
        """Check the context carries what the stage needs."""
