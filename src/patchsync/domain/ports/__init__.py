"""Domain port definitions for adapters."""

from __future__ import annotations

from .remote import ActionExecutor, ExecutionResult, RemoteProbe

__all__ = ["ActionExecutor", "ExecutionResult", "RemoteProbe"]
