"""Ordered pipeline of context managers."""

from typing import Callable

from loguru import logger

from contextpipe.compaction.base import ContextManager
from contextpipe.compaction.dispatch import BackgroundLoop
from contextpipe.compaction.sliding_window import SlidingWindowManager
from contextpipe.compaction.summarization import SummarizationManager
from contextpipe.compaction.truncation import ToolsOutputTruncateManager
from contextpipe.config.schema import ManagerSpec, PipelineConfig
from contextpipe.constants import SUMMARIZATION_TIMEOUT_SECONDS
from contextpipe.context.estimator import TokenEstimator
from contextpipe.context.snapshot import ContextSnapshot
from contextpipe.providers.base import InferenceClient


class ManagerFactory:
    """Builds context managers from their type name and config map."""

    def __init__(
        self,
        client: InferenceClient | None = None,
        estimator: TokenEstimator | None = None,
        summarization_timeout: float = SUMMARIZATION_TIMEOUT_SECONDS,
        loop: BackgroundLoop | None = None,
    ):
        self.client = client
        self.estimator = estimator
        self.summarization_timeout = summarization_timeout
        self.loop = loop
        self._builders: dict[str, Callable[[dict], ContextManager]] = {
            SlidingWindowManager.type: lambda config: SlidingWindowManager(config),
            ToolsOutputTruncateManager.type: lambda config: ToolsOutputTruncateManager(
                config, estimator=self.estimator
            ),
            SummarizationManager.type: self._build_summarization,
        }

    def _build_summarization(self, config: dict) -> ContextManager:
        if self.client is None:
            raise ValueError("SummarizationManager requires an inference client")
        return SummarizationManager(
            self.client,
            config,
            timeout=self.summarization_timeout,
            loop=self.loop,
            estimator=self.estimator,
        )

    def register(self, type_name: str, builder: Callable[[dict], ContextManager]) -> None:
        """Register a builder for a custom manager type."""
        self._builders[type_name] = builder

    @property
    def type_names(self) -> list[str]:
        return list(self._builders)

    def create(self, spec: ManagerSpec) -> ContextManager:
        builder = self._builders.get(spec.type)
        if builder is None:
            raise ValueError(
                f"Unknown context manager type: {spec.type}. "
                f"Available: {', '.join(self._builders)}"
            )
        return builder(dict(spec.config))


class ContextPipeline:
    """
    Runs context managers in order against one snapshot.

    Each manager is asked whether it should activate and, if so, executes
    against the snapshot in place. A failing manager is logged and skipped so
    the remaining managers still run.
    """

    def __init__(self, managers: list[ContextManager] | None = None, name: str = "pipeline"):
        self.managers: list[ContextManager] = list(managers or [])
        self.name = name

    @classmethod
    def from_specs(
        cls,
        specs: list[ManagerSpec],
        factory: ManagerFactory | None = None,
        name: str = "pipeline",
    ) -> "ContextPipeline":
        factory = factory or ManagerFactory()
        return cls([factory.create(spec) for spec in specs], name=name)

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        hook: str,
        factory: ManagerFactory | None = None,
    ) -> "ContextPipeline":
        """Build the pipeline attached to ``hook`` in a pipeline config."""
        return cls.from_specs(config.managers_for(hook), factory, name=hook)

    def add(self, manager: ContextManager) -> None:
        self.managers.append(manager)

    def __len__(self) -> int:
        return len(self.managers)

    def run(self, snapshot: ContextSnapshot) -> ContextSnapshot:
        """
        Run every manager against the snapshot.

        Args:
            snapshot: Snapshot to mutate in place.

        Returns:
            The same snapshot instance.
        """
        for manager in self.managers:
            try:
                if not manager.should_activate(snapshot):
                    logger.debug(f"[{self.name}] {manager.type} not activated")
                    continue
                manager.execute(snapshot)
            except Exception:
                logger.exception(f"[{self.name}] {manager.type} failed, continuing pipeline")
        return snapshot
