"""Core use cases - Application service orchestration.

Write-path producers persist provisional resources and dispatch lifecycle
events; worker-side handlers enrich resources in response to those events.
Use cases orchestrate ports without containing framework-specific code.
"""

from __future__ import annotations

from packages.core.use_cases.chat import ChatInput, ChatOutput, ChatUseCase
from packages.core.use_cases.create_post import CreatePostInput, CreatePostOutput, CreatePostUseCase
from packages.core.use_cases.delete_media import DeleteMediaUseCase
from packages.core.use_cases.delete_post import DeletePostUseCase
from packages.core.use_cases.process_media import ProcessMediaEventUseCase
from packages.core.use_cases.process_post import ProcessPostEventUseCase
from packages.core.use_cases.reconcile_pending import ReconcilePendingUseCase
from packages.core.use_cases.update_post import UpdatePostInput, UpdatePostUseCase
from packages.core.use_cases.upload_media import (
    UploadMediaInput,
    UploadMediaOutput,
    UploadMediaUseCase,
)

__all__ = [
    "ChatInput",
    "ChatOutput",
    "ChatUseCase",
    "CreatePostInput",
    "CreatePostOutput",
    "CreatePostUseCase",
    "DeleteMediaUseCase",
    "DeletePostUseCase",
    "ProcessMediaEventUseCase",
    "ProcessPostEventUseCase",
    "ReconcilePendingUseCase",
    "UpdatePostInput",
    "UpdatePostUseCase",
    "UploadMediaInput",
    "UploadMediaOutput",
    "UploadMediaUseCase",
]
