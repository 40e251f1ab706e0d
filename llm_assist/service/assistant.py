"""Assistant application object.

Purpose
-------
Wire configuration, adapters, transport, the stream ingestor and the patch
engine into the two user-facing operations:

- ``prompt``: stream a completion into a document at a mark.
- ``edit``: request a multi-file diff, validate it and apply it.

The assistant owns its ``SessionRegistry``, the ``RootLocks`` that serialize
patch application per working tree and a root cancellation token;
``close`` (or leaving ``async with``) cancels every in-flight session.

Failure modes
-------------
- ``prompt`` never raises for provider-side failures; they are reported in
  the returned ``StreamResult`` and through the notifier.
- ``edit`` raises ``ProviderError`` for request failures and ``PatchError``
  subclasses for rejected responses, after notifying the user.
- Unknown provider names raise ``UnknownProviderError`` from both.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..base.cancellation import CancellationToken
from ..base.dto import ProviderSettings
from ..base.errors import ErrorCode, PatchError, ProviderError, classify_exception
from ..base.factory import get_adapter
from ..base.interfaces import LoggingNotifier, Notifier, ProcessRunner, ProviderAdapter, Sink
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import ChatRequest, ExtractOptions
from ..base.streaming import EditScheduler, SessionRegistry, StreamIngestor, StreamResult
from ..base.streaming.sse import error_message
from ..base.timeouts import TimeoutConfig, get_timeout_config
from ..config import ProviderTable, resolve_api_key
from ..context import ContextStore
from ..patch import ApplyResult, PatchApplier, PatchApplyOptions, PatchTool, RootLocks
from ..process import AsyncioProcessRunner
from .catalog import fetch_models
from .prompts import DEFAULT_SYSTEM_PROMPT, EDIT_SYSTEM_PROMPT, REPLACE_SYSTEM_PROMPT, build_user_prompt
from .transport import curl_command, redact_args


@dataclass(frozen=True)
class EditResult:
    """Response text of an edit request and what applying it did."""

    text: str
    apply_result: ApplyResult


class Assistant:
    """Editor assistant service (async context manager)."""

    def __init__(
        self,
        providers: Optional[ProviderTable] = None,
        runner: Optional[ProcessRunner] = None,
        registry: Optional[SessionRegistry] = None,
        scheduler: Optional[EditScheduler] = None,
        notifier: Optional[Notifier] = None,
        timeouts: Optional[TimeoutConfig] = None,
        *,
        patch_tool: Optional[PatchTool] = None,
        context: Optional[ContextStore] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.providers = providers if providers is not None else ProviderTable()
        self.runner = runner if runner is not None else AsyncioProcessRunner()
        self.registry = registry if registry is not None else SessionRegistry()
        self.scheduler = scheduler if scheduler is not None else EditScheduler()
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.timeouts = timeouts if timeouts is not None else get_timeout_config()
        self.context = context if context is not None else ContextStore()
        self.patch_tool = patch_tool
        self.root_locks = RootLocks()
        self.selected_model: Optional[str] = None
        self._logger = logger or get_logger("llm_assist.service")
        self._root_token = CancellationToken()
        self._closed = False
        self.ingestor = StreamIngestor(
            self.runner,
            self.registry,
            self.scheduler,
            notifier=self.notifier,
            timeouts=self.timeouts,
        )

    # Lifecycle ---------------------------------------------------------------
    async def start(self) -> "Assistant":
        if self._closed:
            raise RuntimeError("assistant is closed")
        return self

    async def close(self) -> None:
        """Cancel every in-flight session; further calls are rejected."""
        if self._closed:
            return
        self._closed = True
        self.registry.cancel_all("shutdown")
        self._root_token.cancel("shutdown")

    async def __aenter__(self) -> "Assistant":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # Configuration -----------------------------------------------------------
    def setup(self, services: Optional[Dict[str, Dict[str, Any]]] = None, *, timeout_ms: Optional[int] = None) -> None:
        self.providers.setup(services, timeout_ms=timeout_ms)

    def select_model(self, model: Optional[str]) -> None:
        """Override the configured model for every provider (``None`` resets)."""
        self.selected_model = model

    async def list_models(self, url: Optional[str] = None) -> List[Dict[str, Any]]:
        return await fetch_models(url) if url else await fetch_models()

    def _resolve(self, service: str) -> Tuple[ProviderSettings, ProviderAdapter, str, Optional[str]]:
        if self._closed:
            raise RuntimeError("assistant is closed")
        settings = self.providers.get(service)
        adapter = get_adapter(settings.adapter)
        model = self.selected_model or settings.model
        return settings, adapter, model, resolve_api_key(settings)

    # Streaming ---------------------------------------------------------------
    async def prompt(
        self,
        service: str,
        document: Sink,
        mark: Any,
        prompt_text: str,
        *,
        replace: bool = False,
        context: Optional[str] = None,
        trim_thinking: bool = False,
    ) -> StreamResult:
        """Stream a completion for ``prompt_text`` into ``document`` at ``mark``.

        ``context`` defaults to the extra context held in ``self.context``.
        """
        settings, adapter, model, api_key = self._resolve(service)
        if context is None:
            context = self.context.extra_context_string()
        request = ChatRequest(
            system_prompt=REPLACE_SYSTEM_PROMPT if replace else DEFAULT_SYSTEM_PROMPT,
            user_prompt=build_user_prompt(prompt_text, context),
            model=model,
            stream=True,
        ).with_params(**settings.stream_params)
        argv = curl_command(settings, adapter.build_payload(request), api_key, stream=True)
        log_event(
            self._logger,
            "prompt.request",
            LogContext(provider=service, model=model),
            level=logging.DEBUG,
            argv=redact_args(argv),
        )
        return await self.ingestor.stream(
            argv,
            adapter=adapter,
            sink=document,
            mark=mark,
            timeout=settings.timeout_seconds,
            opts=ExtractOptions(trim_thinking=trim_thinking),
            provider=service,
            model=model,
            parent=self._root_token,
        )

    def cancel_all(self) -> int:
        return self.registry.cancel_all()

    def cancel_at(self, document: Any, row: int) -> int:
        return self.registry.cancel_at(document, row)

    # Edits -------------------------------------------------------------------
    async def edit(
        self,
        service: str,
        prompt_text: str,
        *,
        context: Optional[str] = None,
        files: Optional[Iterable[str]] = None,
        apply: bool = True,
        dry_run: bool = False,
        retry: int = 0,
        allow_new_files: bool = False,
        root: Union[str, Path] = ".",
    ) -> EditResult:
        """Request a diff for ``prompt_text`` and apply it under ``root``.

        ``files`` restricts which existing files may be touched; ``apply=False``
        forces a dry run (check phase only). Without explicit arguments the
        context text and the allowed files come from ``self.context``.
        """
        if context is None:
            context = self.context.extra_context_string()
        if files is None and self.context.paths:
            files = [item.path for item in self.context.paths]
        options = PatchApplyOptions.for_files(
            files,
            retry_count=retry,
            dry_run=dry_run or not apply,
            allow_new_files=allow_new_files,
        )
        try:
            text = await self._request_edit(service, prompt_text, context)
            applier = PatchApplier(root, tool=self.patch_tool, locks=self.root_locks)
            result = await asyncio.to_thread(applier.apply_response, text, options)
        except (ProviderError, PatchError) as exc:
            self.notifier.notify(str(exc.message), logging.ERROR)
            raise
        return EditResult(text=text, apply_result=result)

    async def _request_edit(self, service: str, prompt_text: str, context: str) -> str:
        settings, adapter, model, api_key = self._resolve(service)
        request = ChatRequest(
            system_prompt=EDIT_SYSTEM_PROMPT,
            user_prompt=build_user_prompt(prompt_text, context),
            model=model,
            stream=False,
        ).with_params(**settings.edit_params)
        argv = curl_command(settings, adapter.build_payload(request), api_key, stream=False)
        ctx = LogContext(provider=service, model=model)
        log_event(self._logger, "edit.request", ctx, level=logging.DEBUG, argv=redact_args(argv))

        def _error(code: ErrorCode, message: str, raw: Optional[Exception] = None) -> ProviderError:
            return ProviderError(code=code, message=message, provider=service, model=model, raw=raw)

        try:
            completed = await self.runner.run(argv, timeout=self.timeouts.http_timeout)
        except (OSError, ValueError, TimeoutError) as exc:
            raise _error(classify_exception(exc), f"request failed: {exc}", exc) from exc
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise _error(
                ErrorCode.UNAVAILABLE,
                f"request process exited with code {completed.returncode}" + (f": {stderr}" if stderr else ""),
            )
        raw_body = completed.stdout.decode("utf-8", errors="replace")
        try:
            body = json.loads(raw_body)
        except ValueError as exc:
            raise _error(ErrorCode.MALFORMED_PAYLOAD, f"unparseable response body: {raw_body[:200]}", exc) from exc
        if isinstance(body, dict) and body.get("error") is not None:
            raise _error(ErrorCode.PROVIDER, error_message(body["error"]))
        text = adapter.extract_final_text(body, ExtractOptions(trim_thinking=True))
        log_event(self._logger, "edit.response", ctx, chars=len(text))
        return text


__all__ = ["Assistant", "EditResult"]
