from v0fetch.cli import main as main
from v0fetch.commands.fetch import (
    PipelineDeps as PipelineDeps,
    PipelineOptions as PipelineOptions,
    PipelineResult as PipelineResult,
    default_deps as default_deps,
    run_pipeline as run_pipeline,
)
from v0fetch.core.api import V0Client as V0Client
from v0fetch.core.constants import __version__ as __version__
from v0fetch.domain.identity import resolve_chat_identity as resolve_chat_identity

__all__ = [
    "__version__",
    "main",
    "run_pipeline",
    "default_deps",
    "PipelineDeps",
    "PipelineOptions",
    "PipelineResult",
    "V0Client",
    "resolve_chat_identity",
]
