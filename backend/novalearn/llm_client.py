from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import httpx

from .settings import settings

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class LLMError(RuntimeError):
	"""The hosted model could not produce a usable answer."""


def gemini_endpoint(model: str, provider: str) -> Tuple[str, bool]:
	"""generateContent URL for ``model`` and whether the key goes in the query string.

	AI Studio takes ``?key=``; Vertex AI Express takes an ``x-goog-api-key`` header.
	"""
	if provider == "vertex":
		region = settings.vertex_region
		project = settings.vertex_project or "placeholder-project"
		url = f"https://{region}-aiplatform.googleapis.com/v1/projects/{project}/locations/{region}/publishers/google/models/{model}:generateContent"
		return url, False
	return f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent", True


class OpenRouterFallback:
	"""Chat-completions endpoint tried once after Gemini gives up."""

	def __init__(self, api_key: str, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
		self.model = settings.openrouter_model
		self.url = settings.openrouter_base_url
		self.headers = {
			"Authorization": f"Bearer {api_key}",
			"Content-Type": "application/json",
			"HTTP-Referer": settings.openrouter_referer,
			"X-Title": settings.openrouter_title,
		}
		self._client = httpx.AsyncClient(timeout=settings.llm_timeout_seconds, transport=transport)

	async def generate(self, prompt: str, *, system_prompt: Optional[str] = None) -> str:
		messages = []
		if system_prompt:
			messages.append({"role": "system", "content": system_prompt})
		messages.append({"role": "user", "content": prompt})
		r = await self._client.post(
			self.url,
			headers={k: v for k, v in self.headers.items() if v},
			json={"model": self.model, "messages": messages},
		)
		r.raise_for_status()
		return r.json()["choices"][0]["message"]["content"]

	async def aclose(self) -> None:
		await self._client.aclose()


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise LLMError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		self.provider = settings.gemini_provider
		url, self._auth_in_query = gemini_endpoint(self.model, self.provider)
		self.base_url = base_url or url
		self.max_retries = max(0, settings.llm_max_retries)
		self.backoff_seconds = settings.llm_retry_backoff_seconds
		self._client = httpx.AsyncClient(timeout=settings.llm_timeout_seconds, transport=transport)
		self.fallback: Optional[OpenRouterFallback] = None
		if settings.openrouter_api_key:
			self.fallback = OpenRouterFallback(settings.openrouter_api_key, transport=transport)

	async def generate(self, prompt: str, *, system_prompt: Optional[str] = None, temperature: Optional[float] = None) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		if system_prompt:
			payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
		if temperature is not None:
			payload["generationConfig"] = {"temperature": temperature}
		return await self._post_payload(payload, fallback_prompt=prompt, system_prompt=system_prompt)

	async def generate_json(self, prompt: str, *, system_prompt: Optional[str] = None, temperature: Optional[float] = None) -> Any:
		text = await self.generate(prompt, system_prompt=system_prompt, temperature=temperature)
		return extract_json(text)

	async def _post_payload(
		self,
		payload: Dict[str, Any],
		*,
		fallback_prompt: Optional[str],
		system_prompt: Optional[str] = None,
	) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		last_error: Optional[Exception] = None
		for attempt in range(self.max_retries + 1):
			if attempt:
				await asyncio.sleep(self.backoff_seconds * attempt)
			try:
				r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
				r.raise_for_status()
			except httpx.HTTPStatusError as http_err:
				last_error = http_err
				if http_err.response.status_code in _RETRYABLE_STATUS:
					logger.warning("Gemini returned %s (attempt %d)", http_err.response.status_code, attempt + 1)
					continue
				break
			except httpx.RequestError as net_err:
				last_error = net_err
				logger.warning("Gemini request failed (attempt %d): %s", attempt + 1, net_err)
				continue
			try:
				data = r.json()
				return data["candidates"][0]["content"]["parts"][0]["text"]
			except (ValueError, KeyError, IndexError, TypeError):
				last_error = LLMError(f"Unexpected Gemini response: {r.text[:200]}")
				break
		if self.fallback is None or fallback_prompt is None:
			raise LLMError(f"Gemini call failed: {last_error}") from last_error
		logger.warning("Gemini failed (%s); trying OpenRouter", last_error)
		try:
			return await self.fallback.generate(fallback_prompt, system_prompt=system_prompt)
		except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as fallback_err:
			raise LLMError(
				f"Gemini primary call failed ({last_error}); fallback via OpenRouter also failed"
			) from fallback_err

	async def aclose(self) -> None:
		await self._client.aclose()
		if self.fallback is not None:
			await self.fallback.aclose()


def extract_json(text: str) -> Any:
	"""Parse model output as JSON: raw, inside a ```json fence, or the outermost {...} / [...] span."""
	try:
		return json.loads(text)
	except (TypeError, ValueError):
		pass
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text or "")
	if code_block:
		try:
			return json.loads(code_block.group(1))
		except ValueError:
			pass
	for opener, closer in (("{", "}"), ("[", "]")):
		first = (text or "").find(opener)
		last = (text or "").rfind(closer)
		if first != -1 and last > first:
			try:
				return json.loads(text[first : last + 1])
			except ValueError:
				pass
	raise LLMError("LLM did not return valid JSON.")


async def get_llm_client() -> AsyncIterator[Optional[GeminiClient]]:
	"""FastAPI dependency: a client per request, or None when no model is configured."""
	try:
		client = GeminiClient()
	except LLMError:
		logger.info("No LLM configured; generation endpoints will serve fallback content")
		yield None
		return
	try:
		yield client
	finally:
		await client.aclose()
