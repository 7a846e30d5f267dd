"""Natural-language report assistant backed by a local text-generation model."""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, List, Protocol

import requests
from loguru import logger

from inventario.core.concurrency import run_in_thread_report
from inventario.core.config import settings

# Heavy inline payloads that only waste the model's context window
SNAPSHOT_EXCLUDED_FIELDS = frozenset({"foto", "qrCode"})

_ARRAY_SPAN = re.compile(r"\[.*\]", re.DOTALL)

PROMPT_TEMPLATE = """
You are an inventory assistant API. You will receive inventory data in JSON format and a user query.

INVENTORY DATA:
{data}

USER QUERY: "{query}"

INSTRUCTIONS:
1. Analyze the user query to understand what equipment they are looking for (e.g., specific brand, status, department).
2. Filter the INVENTORY DATA based on the query.
3. Return ONLY a valid JSON array containing the matching objects.
4. Do NOT include any explanation, markdown, or text outside the JSON array.
5. If no items match, return an empty JSON array [].
"""


class ReportServiceError(Exception):
    """The generation service could not be reached or answered with an error."""


class ReportParseError(ReportServiceError):
    """The service answered, but not with a JSON array of records."""


class ReportGenerator(Protocol):
    async def generate_structured_filter(
        self, query: str, snapshot: List[dict]
    ) -> List[dict]: ...


def strip_snapshot(items: Iterable[dict]) -> List[dict]:
    return [
        {key: value for key, value in item.items() if key not in SNAPSHOT_EXCLUDED_FIELDS}
        for item in items
    ]


def _as_record_list(parsed: Any) -> List[dict]:
    if isinstance(parsed, dict):
        # format="json" makes some models wrap the array: {"items": [...]}
        lists = [value for value in parsed.values() if isinstance(value, list)]
        if len(lists) == 1:
            parsed = lists[0]
    if not isinstance(parsed, list) or not all(isinstance(item, dict) for item in parsed):
        raise ReportParseError("IA não retornou um formato de dados válido.")
    return parsed


def extract_json_array(text: str) -> List[dict]:
    """Parse the model output, falling back to the first ``[...]`` span."""

    try:
        return _as_record_list(json.loads(text))
    except json.JSONDecodeError:
        pass
    except ReportParseError:
        if not _ARRAY_SPAN.search(text or ""):
            raise

    match = _ARRAY_SPAN.search(text or "")
    if not match:
        raise ReportParseError("IA não retornou um formato de dados válido.")
    try:
        return _as_record_list(json.loads(match.group(0)))
    except json.JSONDecodeError as exc:
        raise ReportParseError("IA não retornou um formato de dados válido.") from exc


class OllamaReportGenerator:
    """Calls an Ollama-compatible ``/api/generate`` endpoint."""

    def __init__(
        self,
        url: str | None = None,
        model: str | None = None,
        timeout: int | None = None,
    ) -> None:
        self.url = url or settings.OLLAMA_URL
        self.model = model or settings.OLLAMA_MODEL
        self.timeout = timeout or settings.OLLAMA_TIMEOUT_SEC

    def _build_prompt(self, query: str, snapshot: List[dict]) -> str:
        return PROMPT_TEMPLATE.format(
            data=json.dumps(snapshot, ensure_ascii=False, default=str), query=query
        )

    def _generate(self, prompt: str) -> str:
        try:
            response = requests.post(
                self.url,
                json={"model": self.model, "prompt": prompt, "stream": False, "format": "json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.HTTPError as exc:
            raise ReportServiceError(f"Ollama API error: {exc.response.reason}") from exc
        except requests.RequestException as exc:
            raise ReportServiceError(f"Ollama API indisponível: {exc}") from exc
        except ValueError as exc:
            raise ReportParseError("Resposta inválida do serviço de IA.") from exc
        generated = body.get("response") if isinstance(body, dict) else None
        if not isinstance(generated, str):
            raise ReportParseError("Resposta inválida do serviço de IA.")
        return generated

    async def generate_structured_filter(self, query: str, snapshot: List[dict]) -> List[dict]:
        prompt = self._build_prompt(query, strip_snapshot(snapshot))
        generated = await run_in_thread_report(self._generate, prompt)
        try:
            return extract_json_array(generated)
        except ReportParseError:
            logger.bind(model=self.model, output=generated[:500]).warning("report_output_unparseable")
            raise


def get_report_generator() -> ReportGenerator:
    """FastAPI dependency; tests override it with a stub generator."""

    return OllamaReportGenerator()
