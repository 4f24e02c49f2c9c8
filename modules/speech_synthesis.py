"""
Speech Synthesis Module
-----------------------
REST client for Azure Cognitive Services text-to-speech.
Turns card text into an mp3 file stored under the audio directory.
"""

import asyncio
import logging
import re
from pathlib import Path
from xml.sax.saxutils import escape, quoteattr

import httpx

from config.settings import (
    AUDIO_DIR,
    AZURE_TTS_KEY,
    AZURE_TTS_LANGUAGE_CODES,
    AZURE_TTS_OUTPUT_FORMAT,
    AZURE_TTS_REGION,
    AZURE_TTS_USER_AGENT,
    AZURE_TTS_VOICES,
)
from modules.rate_limiter import RateLimitError

logger = logging.getLogger(__name__)

BR_TAG_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

DEFAULT_LANGUAGE = "English"
DEFAULT_LANGUAGE_CODE = "en-US"


class SpeechSynthesisError(Exception):
    """Raised when Azure TTS is unreachable or rejects the request."""


class SpeechRateLimitError(SpeechSynthesisError, RateLimitError):
    """Raised when Azure TTS answers with HTTP 429."""


def clean_text(text: str) -> str:
    """Replace <br> tags with spaces and collapse the surrounding whitespace."""
    return " ".join(BR_TAG_RE.sub(" ", text).split())


def build_ssml(text: str, voice: str, language_code: str) -> str:
    """Build the SSML document for a single utterance."""
    return (
        f'<speak version="1.0" xml:lang={quoteattr(language_code)}>'
        f"<voice xml:lang={quoteattr(language_code)} name={quoteattr(voice)}>"
        f"{escape(text)}"
        "</voice></speak>"
    )


class AzureTTSClient:
    """Client for the Azure TTS REST API."""

    def __init__(
        self,
        key: str = AZURE_TTS_KEY,
        region: str = AZURE_TTS_REGION,
        audio_dir: Path = AUDIO_DIR,
        voices: dict[str, str] | None = None,
        language_codes: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.key = key
        self.region = region
        self.audio_dir = Path(audio_dir)
        self.voices = voices or AZURE_TTS_VOICES
        self.language_codes = language_codes or AZURE_TTS_LANGUAGE_CODES
        self.transport = transport

    @property
    def url(self) -> str:
        return f"https://{self.region}.tts.speech.microsoft.com/cognitiveservices/v1"

    def voice_for(self, language: str) -> str:
        return self.voices.get(language) or self.voices[DEFAULT_LANGUAGE]

    def language_code_for(self, language: str) -> str:
        return self.language_codes.get(language, DEFAULT_LANGUAGE_CODE)

    async def _request(self, ssml: str) -> bytes:
        """Send SSML to Azure and return the audio bytes.

        Raises:
            SpeechRateLimitError: If Azure answers with HTTP 429
            SpeechSynthesisError: For any other HTTP, timeout or connection failure
        """
        headers = {
            "Ocp-Apim-Subscription-Key": self.key,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": AZURE_TTS_OUTPUT_FORMAT,
            "User-Agent": AZURE_TTS_USER_AGENT,
        }

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=5.0),
                transport=self.transport,
            ) as client:
                response = await client.post(
                    self.url, content=ssml.encode("utf-8"), headers=headers
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                raise SpeechRateLimitError("Azure TTS rate limit exceeded") from e
            raise SpeechSynthesisError(f"Azure TTS HTTP error: {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise SpeechSynthesisError("Azure TTS request timed out") from e
        except httpx.HTTPError as e:
            raise SpeechSynthesisError(f"Cannot reach Azure TTS: {e}") from e

        return response.content

    async def synthesize(self, text: str, card_id: str, language: str) -> str:
        """
        Synthesize text and store it as ``<card_id>.mp3``.

        Args:
            text: Card text, may contain <br> tags
            card_id: Identifier used for the file name
            language: Language name as used in the card request

        Returns:
            Path to the written audio file
        """
        voice = self.voice_for(language)
        logger.debug(f"Requested language: {language}, using voice: {voice}")

        ssml = build_ssml(clean_text(text), voice, self.language_code_for(language))
        audio = await self._request(ssml)

        self.audio_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.audio_dir / f"{card_id}.mp3"
        await asyncio.to_thread(file_path.write_bytes, audio)
        logger.debug(f"Stored audio file: {file_path}")
        return str(file_path)

    async def is_available(self) -> bool:
        """Check that credentials are configured and accepted."""
        if not self.key or not self.region:
            return False
        try:
            await self._request(build_ssml("ok", self.voice_for(DEFAULT_LANGUAGE), DEFAULT_LANGUAGE_CODE))
            return True
        except SpeechSynthesisError:
            return False
