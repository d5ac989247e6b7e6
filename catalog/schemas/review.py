"""Schemas for user reviews and AI-assisted review generation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Review(_Camel):
	id: str
	user: str = "Anonymous"
	rating: int = Field(ge=1, le=5)
	text: str = ""
	sentiment_score: float | None = None
	created_at: str | None = None


class ReviewCreate(_Camel):
	user: str = Field(default="Anonymous", min_length=1, max_length=100)
	rating: int = Field(ge=1, le=5)
	text: str = Field(min_length=1, max_length=5000)
	sentiment_score: float | None = None


class ReviewGenerateRequest(_Camel):
	experience_text: str = Field(min_length=3, max_length=2000)


class GeneratedReview(_Camel):
	review: str
	sentiment_score: float
