import asyncio
import json
import logging
from typing import Optional

from google import genai
from google.genai import types
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from creatorlens.config import get_settings
from creatorlens.schemas.analysis import (
    InstagramProfile,
    Persona,
    YoutubeProfile,
    fallback_persona,
)

logger = logging.getLogger(__name__)

PERSONA_SCHEMA_HINT = """{
  "niche": { "primary": "...", "secondary": "..." },
  "contentStyle": {
    "form": "Long-form/Short-form/Mixed",
    "tone": "Teaching/Storytelling/etc",
    "vibe": "Serious/Fun/Safe/Experimental"
  },
  "archetype": "Educator/Entertainer/Analyst/Vlogger/etc",
  "topics": ["topic1", "topic2"],
  "audience": { "type": "Student/Pro/etc", "level": "Beginner/Expert" },
  "consistency": { "pattern": "e.g. Daily uploads", "frequency": "High/Low" },
  "engagement": { "behavior": "Fanatic/Passive/Critical", "rate": "High/Low" },
  "swot": {
    "strengths": ["3 key strengths based on metrics"],
    "weaknesses": ["3 potential weaknesses"]
  },
  "summary": "One sentence: what they make, how they make it, and who it is for."
}"""


def build_prompt(youtube: Optional[YoutubeProfile], instagram: Optional[InstagramProfile]) -> str:
    yt_json = youtube.model_dump_json(by_alias=True) if youtube else '"Not Available"'
    ig_json = instagram.model_dump_json(by_alias=True) if instagram else '"Not Available"'
    return f"""Act as a professional Brand Strategist. Analyze the following creator data from
YouTube and Instagram to build a comprehensive "Creator Persona".

Data Source 1 (YouTube): {yt_json}
Data Source 2 (Instagram): {ig_json}

Your Goal: Reverse-engineer the creator's strategy.

Strictly output ONLY a JSON object with this exact schema (no markdown formatting):
{PERSONA_SCHEMA_HINT}

Analysis Rules:
- Infer 'Audience' from the complexity of video titles/captions.
- Infer 'Consistency' by looking at the dates of recent posts.
- Infer 'Primary Niche' from the most frequent keywords.
- If data is missing for one platform, infer from the other.
"""


def parse_persona(text: str) -> Persona:
    """Parse model output into a Persona, tolerating ```json fences."""
    cleaned = text.replace("```json", "").replace("```", "").strip()
    return Persona.model_validate(json.loads(cleaned))


class PersonaService:
    """Generate a creator persona with Gemini.

    generate() never raises: after the last failed attempt it returns the
    fallback persona.
    """

    def __init__(self, client: Optional[genai.Client] = None):
        settings = get_settings()
        self.api_key = settings.gemini_api_key
        self.model = settings.gemini_model
        self.max_attempts = max(1, settings.persona_max_attempts)
        self.timeout = settings.persona_timeout_seconds
        self.retry_delay = 2.0
        self._client = client

    def _is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(
        self,
        youtube: Optional[YoutubeProfile],
        instagram: Optional[InstagramProfile],
    ) -> Persona:
        if not self._is_configured():
            logger.warning("GEMINI_API_KEY is missing, returning fallback persona")
            return fallback_persona()

        prompt = build_prompt(youtube, instagram)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.retry_delay, min=self.retry_delay, max=10),
                retry=retry_if_exception_type(Exception),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    response = await asyncio.wait_for(
                        self._get_client().aio.models.generate_content(
                            model=self.model,
                            contents=prompt,
                            config=types.GenerateContentConfig(response_mime_type="application/json"),
                        ),
                        timeout=self.timeout,
                    )
                    persona = parse_persona(response.text or "")
        except Exception as e:
            logger.error("Persona generation gave up after %d attempts, using fallback: %r", self.max_attempts, e)
            return fallback_persona()
        return persona
