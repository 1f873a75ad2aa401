"""LLM-backed guest suggestion.

Asks an OpenAI-compatible chat completion endpoint (Groq by default) for
10-15 candidate guests matching the producer's criteria and turns the reply
into Candidate records for the evaluation pipeline.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import openai
from openai import AsyncOpenAI

from async_utils import retry_async
from config import Config
from error_handling import (
    ConfigurationError,
    ExternalServiceError,
    QuotaExceededError,
    ResponseParseError,
    RetryableError,
    ServiceTimeoutError,
)
from llm_response import candidates_from_suggestions, parse_guest_suggestions
from models import Candidate
from url_utils import normalize_twitter_handle, validate_and_normalize_url

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a podcast guest research assistant. Your task is to analyze the input and suggest relevant guests based on the provided criteria.
Return 10-15 guest suggestions of real, notable people in this JSON format:
[
  {
    "name": "Guest Name",
    "title": "Professional Title",
    "company": "Company Name",
    "expertise": ["Area 1", "Area 2"],
    "bio": "Short professional bio",
    "linkedinUrl": "https://linkedin.com/in/handle",
    "twitterHandle": "handle",
    "pastPodcasts": ["Podcast 1", "Podcast 2"],
    "topicMatch": ["Match 1", "Match 2"]
  }
]
Focus on finding real, currently active professionals who would be genuinely relevant and interesting guests.
Prefer practitioners and rising voices over household names.
Ensure all information is accurate and up-to-date."""


@dataclass(frozen=True)
class GuestSearchParams:
    """What the producer is looking for."""

    podcast_topic: str
    guest_expertise: str = ""
    keywords: str = ""
    audience_size: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_handle: Optional[str] = None


def build_user_prompt(params: GuestSearchParams) -> str:
    lines = [
        "Find podcast guests with the following criteria:",
        f"- Podcast Topic: {params.podcast_topic}",
        f"- Guest Expertise: {params.guest_expertise}",
        f"- Keywords: {params.keywords}",
    ]
    if params.audience_size:
        lines.append(f"- Preferred Audience Size: {params.audience_size}")
    if params.linkedin_url:
        lines.append(f"- LinkedIn Profile: {params.linkedin_url}")
    if params.twitter_handle:
        lines.append(f"- Twitter Handle: {params.twitter_handle}")
    return "\n".join(lines)


def normalize_search_params(params: GuestSearchParams) -> GuestSearchParams:
    """Validate the reference profile pointers in the request.

    Raises:
        ValueError: If a LinkedIn URL is given but invalid
    """
    linkedin_url = params.linkedin_url
    if linkedin_url:
        validation = validate_and_normalize_url(linkedin_url)
        if not validation.is_valid or validation.platform != "linkedin":
            raise ValueError(
                f"Invalid LinkedIn URL: {validation.error or 'not a LinkedIn URL'}"
            )
        linkedin_url = validation.normalized_url

    return GuestSearchParams(
        podcast_topic=params.podcast_topic,
        guest_expertise=params.guest_expertise,
        keywords=params.keywords,
        audience_size=params.audience_size,
        linkedin_url=linkedin_url,
        twitter_handle=normalize_twitter_handle(params.twitter_handle),
    )


class GuestSuggester:
    """Generates candidate guests with a chat completion model."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        max_attempts: int = 3,
    ) -> None:
        if client is None:
            if not Config.GROQ_API_KEY:
                raise ConfigurationError(
                    "GROQ_API_KEY is not configured", problems=["GROQ_API_KEY is required"]
                )
            client = AsyncOpenAI(api_key=Config.GROQ_API_KEY, base_url=Config.GROQ_BASE_URL)
        self.client = client
        self.model = model or Config.GROQ_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_attempts = max_attempts

    async def _complete(self, user_prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                top_p=1,
            )
        except openai.APITimeoutError as e:
            raise ServiceTimeoutError(
                "Language model request timed out", service="groq"
            ) from e
        except openai.RateLimitError as e:
            raise QuotaExceededError(
                "Language model rate limit reached", service="groq", status=429
            ) from e
        except openai.APIStatusError as e:
            raise ExternalServiceError(
                f"Language model returned HTTP {e.status_code}",
                service="groq",
                status=e.status_code,
            ) from e
        except openai.APIConnectionError as e:
            raise ExternalServiceError(
                "Could not reach language model", service="groq"
            ) from e

        if not response.choices or not response.choices[0].message.content:
            raise ResponseParseError("Invalid response from language model")
        return response.choices[0].message.content

    async def suggest(self, params: GuestSearchParams) -> list[Candidate]:
        """
        Ask the model for guest suggestions.

        Raises:
            ValueError: If the request's LinkedIn URL is invalid
            ExternalServiceError: If the model cannot be reached after retries
            ResponseParseError: If the reply holds no JSON array
        """
        params = normalize_search_params(params)
        prompt = build_user_prompt(params)

        content = await retry_async(
            lambda: self._complete(prompt),
            max_attempts=self.max_attempts,
            exceptions=(RetryableError,),
        )
        candidates = candidates_from_suggestions(parse_guest_suggestions(content))
        logger.info(
            f"Language model suggested {len(candidates)} guests for "
            f"'{params.podcast_topic}'"
        )
        return candidates
