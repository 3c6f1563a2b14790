"""ASGI middleware and the per-request context variables it owns."""

from __future__ import annotations

from .request_id import QUIET_PATHS, RequestIdMiddleware, principal_ctx_var, request_id_ctx_var

__all__ = ["QUIET_PATHS", "RequestIdMiddleware", "principal_ctx_var", "request_id_ctx_var"]
