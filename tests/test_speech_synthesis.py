"""Tests for the Azure TTS client."""

import httpx
import pytest

from modules.rate_limiter import RateLimitError
from modules.speech_synthesis import (
    AzureTTSClient,
    SpeechRateLimitError,
    SpeechSynthesisError,
    build_ssml,
    clean_text,
)


def make_client(tmp_path, handler):
    return AzureTTSClient(
        key="secret",
        region="westeurope",
        audio_dir=tmp_path,
        transport=httpx.MockTransport(handler),
    )


class TestSynthesize:
    async def test_writes_mp3_named_after_card(self, tmp_path):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, content=b"ID3audio")

        client = make_client(tmp_path, handler)
        path = await client.synthesize("Gato.<br><br>El gato duerme.", "card-1", "Spanish")

        assert path == str(tmp_path / "card-1.mp3")
        assert (tmp_path / "card-1.mp3").read_bytes() == b"ID3audio"

        request = requests[0]
        assert request.url == "https://westeurope.tts.speech.microsoft.com/cognitiveservices/v1"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "secret"
        assert request.headers["X-Microsoft-OutputFormat"] == "audio-24khz-48kbitrate-mono-mp3"
        body = request.content.decode("utf-8")
        assert "es-MX-DaliaNeural" in body
        assert 'xml:lang="es-MX"' in body
        assert "Gato. El gato duerme." in body
        assert "<br" not in body

    async def test_rate_limit_is_distinguishable(self, tmp_path):
        client = make_client(tmp_path, lambda request: httpx.Response(429))

        with pytest.raises(SpeechRateLimitError) as excinfo:
            await client.synthesize("hola", "card-1", "Spanish")

        assert isinstance(excinfo.value, RateLimitError)
        assert not (tmp_path / "card-1.mp3").exists()

    async def test_server_error_is_not_a_rate_limit(self, tmp_path):
        client = make_client(tmp_path, lambda request: httpx.Response(500))

        with pytest.raises(SpeechSynthesisError) as excinfo:
            await client.synthesize("hola", "card-1", "Spanish")

        assert not isinstance(excinfo.value, RateLimitError)

    async def test_connection_failure(self, tmp_path):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(tmp_path, handler)

        with pytest.raises(SpeechSynthesisError):
            await client.synthesize("hola", "card-1", "Spanish")


class TestVoices:
    def test_unknown_language_falls_back_to_english(self, tmp_path):
        client = AzureTTSClient(key="k", region="r", audio_dir=tmp_path)

        assert client.voice_for("Klingon") == "en-US-JennyNeural"
        assert client.language_code_for("Klingon") == "en-US"

    def test_known_language(self, tmp_path):
        client = AzureTTSClient(key="k", region="r", audio_dir=tmp_path)

        assert client.voice_for("Japanese") == "ja-JP-NanamiNeural"
        assert client.language_code_for("Mandarin Chinese") == "zh-CN"


class TestText:
    def test_clean_text_removes_br_variants(self):
        assert clean_text("One<br>two<BR/>three<br />four") == "One two three four"

    def test_ssml_escapes_markup(self):
        ssml = build_ssml("Tom & Jerry <3", "en-US-JennyNeural", "en-US")

        assert "Tom &amp; Jerry &lt;3" in ssml
        assert 'name="en-US-JennyNeural"' in ssml
