"""Concurrency helpers for controlling background thread usage."""

from __future__ import annotations

from typing import Any, Callable

import anyio

from inventario.core.config import settings

_import_sem = anyio.Semaphore(settings.IMPORT_MAX_CONCURRENCY)
_security_sem = anyio.Semaphore(settings.SECURITY_MAX_CONCURRENCY)
_report_sem = anyio.Semaphore(1)


async def run_in_thread_limited(func: Callable[..., Any], *args: Any):
    """Run a sync callable (CSV parsing) in a worker thread with bounded concurrency."""

    async with _import_sem:
        return await anyio.to_thread.run_sync(func, *args)


async def run_in_thread_security(func: Callable[..., Any], *args: Any):
    async with _security_sem:
        return await anyio.to_thread.run_sync(func, *args)


async def run_in_thread_report(func: Callable[..., Any], *args: Any):
    """The local model serves one generation at a time; queue the rest."""

    async with _report_sem:
        return await anyio.to_thread.run_sync(func, *args)
