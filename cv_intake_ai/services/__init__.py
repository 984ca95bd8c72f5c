"""Service exports: model client and the external collaborators the pipeline talks to."""

from .cache import AnalysisCache, InMemoryAnalysisCache
from .diagnostics import DiagnosticSink, LoggingDiagnosticSink
from .llm_client import ModelClient, OpenAICompatibleModelClient, get_model_client
from .profile_sync import InMemoryProfileSync, ProfileSync, build_profile_payload
from .repository import CVRepository, InMemoryCVRepository
from .storage import InMemoryObjectStorage, ObjectStorage

__all__ = [
    "AnalysisCache",
    "InMemoryAnalysisCache",
    "DiagnosticSink",
    "LoggingDiagnosticSink",
    "ModelClient",
    "OpenAICompatibleModelClient",
    "get_model_client",
    "ProfileSync",
    "InMemoryProfileSync",
    "build_profile_payload",
    "CVRepository",
    "InMemoryCVRepository",
    "ObjectStorage",
    "InMemoryObjectStorage",
]
