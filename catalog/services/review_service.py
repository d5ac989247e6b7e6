"""Generative review integration — prompt, model call, response parsing."""

from __future__ import annotations

import json
import math
from typing import Any

import httpx
import structlog

from catalog.config import get_settings
from catalog.schemas.review import GeneratedReview

logger = structlog.get_logger("catalog.reviews")

_POSITIVE_HINTS = ("love", "great", "amazing", "relax", "calm", "happy", "best", "good", "enjoy")
_NEGATIVE_HINTS = ("bad", "anxious", "paranoid", "headache", "harsh", "worst", "dry", "awful")


class ReviewGenerator:
	"""Turns a user's free-text experience into a short review and a sentiment score."""

	def __init__(self, http_client: httpx.AsyncClient | None = None):
		self.settings = get_settings()
		self.http_client = http_client

	async def generate(self, cultivar_name: str, experience_text: str) -> GeneratedReview:
		payload = await self.call_llm(cultivar_name=cultivar_name, experience_text=experience_text)
		return self.parse_response(
			cultivar_name=cultivar_name,
			experience_text=experience_text,
			llm_payload=payload,
		)

	async def call_llm(self, *, cultivar_name: str, experience_text: str) -> dict[str, Any]:
		if not self.settings.anthropic_api_key:
			return self._fallback_response(cultivar_name=cultivar_name, experience_text=experience_text)

		system_prompt = (
			"You write short, user-friendly reviews of cannabis cultivars from a user's experience. "
			"Also rate the sentiment of the review from -1 (negative) to 1 (positive). "
			"Return strict JSON with keys: review, sentimentScore."
		)
		user_prompt = {
			"cultivarName": cultivar_name,
			"userExperience": experience_text,
		}

		headers = {
			"x-api-key": self.settings.anthropic_api_key,
			"anthropic-version": "2023-06-01",
			"content-type": "application/json",
		}
		body = {
			"model": self.settings.anthropic_model,
			"max_tokens": 400,
			"system": system_prompt,
			"messages": [{"role": "user", "content": json.dumps(user_prompt)}],
		}

		try:
			if self.http_client is not None:
				response = await self.http_client.post(self.settings.anthropic_base_url, headers=headers, json=body)
			else:
				async with httpx.AsyncClient(timeout=self.settings.anthropic_timeout_seconds) as client:
					response = await client.post(self.settings.anthropic_base_url, headers=headers, json=body)
			response.raise_for_status()
			payload = response.json()
		except httpx.HTTPError as exc:
			logger.error("review_generation_failed", cultivar=cultivar_name, error=str(exc))
			raise

		content = payload.get("content")
		if not isinstance(content, list) or not content:
			return self._fallback_response(cultivar_name=cultivar_name, experience_text=experience_text)
		text = str(content[0].get("text") or "").strip()
		try:
			parsed = json.loads(text)
		except json.JSONDecodeError:
			logger.warning("review_generation_unparsable", cultivar=cultivar_name)
			return self._fallback_response(cultivar_name=cultivar_name, experience_text=experience_text)
		if not isinstance(parsed, dict):
			return self._fallback_response(cultivar_name=cultivar_name, experience_text=experience_text)
		return parsed

	def parse_response(
		self,
		*,
		cultivar_name: str,
		experience_text: str,
		llm_payload: dict[str, Any],
	) -> GeneratedReview:
		review = str(llm_payload.get("review") or "").strip()
		if not review:
			review = self._fallback_response(cultivar_name=cultivar_name, experience_text=experience_text)["review"]

		# stored as given; only non-numeric values are replaced
		score_raw = llm_payload.get("sentimentScore", 0.0)
		try:
			score = float(score_raw)
		except (TypeError, ValueError):
			score = 0.0
		if math.isnan(score) or math.isinf(score):
			score = 0.0
		return GeneratedReview(review=review, sentiment_score=score)

	@staticmethod
	def _fallback_response(*, cultivar_name: str, experience_text: str) -> dict[str, Any]:
		lowered = experience_text.lower()
		positive = sum(lowered.count(token) for token in _POSITIVE_HINTS)
		negative = sum(lowered.count(token) for token in _NEGATIVE_HINTS)
		total = positive + negative
		score = 0.0 if total == 0 else round((positive - negative) / total, 2)
		return {
			"review": f"{cultivar_name}: {experience_text.strip()}",
			"sentimentScore": score,
		}


def get_review_generator() -> ReviewGenerator:
	return ReviewGenerator()
