from __future__ import annotations

import json

import httpx
import pytest

from halo_voice.config.defaults import ElevenLabsConfig, SpeechConfig
from halo_voice.runtime.voice.speech import (
    AudioPlayer,
    ElevenLabsClient,
    PlaybackError,
    RemoteTextToSpeech,
    TextToSpeechError,
    VoiceOutput,
)


def _tts(handler) -> RemoteTextToSpeech:
    config = SpeechConfig(tts_url="http://service.test/tts")
    return RemoteTextToSpeech(config, client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_remote_tts_posts_text_and_voice() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, content=b"ID3audio", headers={"content-type": "audio/mpeg"})

    audio = _tts(handler).synthesize("Hello", "voice-1")

    assert audio == b"ID3audio"
    assert seen == [{"text": "Hello", "voiceId": "voice-1"}]


def test_remote_tts_raises_on_upstream_error() -> None:
    with pytest.raises(TextToSpeechError) as excinfo:
        _tts(lambda request: httpx.Response(502, text="bad gateway")).synthesize("Hello")

    assert excinfo.value.status_code == 502


def test_output_plays_remote_audio() -> None:
    config = SpeechConfig()
    player = AudioPlayer()
    output = VoiceOutput(config, tts=_tts(lambda request: httpx.Response(200, content=b"mp3")), player=player)

    assert output.play("Hello") == "remote"
    assert player.get_clips() == (b"mp3",)
    assert output.synthesizer.get_spoken_log() == ()


def test_output_falls_back_to_local_speech() -> None:
    output = VoiceOutput(SpeechConfig(), tts=_tts(lambda request: httpx.Response(500)))

    assert output.play("Hello") == "local"
    assert output.synthesizer.get_spoken_log() == ("Hello",)


def test_output_reports_unplayable_audio() -> None:
    output = VoiceOutput(SpeechConfig(), tts=_tts(lambda request: httpx.Response(200, content=b"x")))

    class BrokenPlayer(AudioPlayer):
        def play(self, audio: bytes) -> None:
            raise PlaybackError("decode failed")

    output.player = BrokenPlayer()

    with pytest.raises(PlaybackError):
        output.play("Hello")


def test_muted_output_does_nothing() -> None:
    output = VoiceOutput(SpeechConfig(enable_tts=False))

    assert output.play("Hello") == "muted"
    assert output.synthesizer.get_spoken_log() == ()


def test_elevenlabs_request_shape() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"mp3")

    client = ElevenLabsClient(
        ElevenLabsConfig(),
        api_key="secret",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    assert client.synthesize("Hi", "voice-9") == b"mp3"
    request = seen[0]
    assert str(request.url) == "https://api.elevenlabs.io/v1/text-to-speech/voice-9"
    assert request.headers["xi-api-key"] == "secret"
    assert request.headers["accept"] == "audio/mpeg"
    assert json.loads(request.content) == {
        "text": "Hi",
        "model_id": "eleven_multilingual_v2",
        "voice_settings": {
            "stability": 0.5,
            "similarity_boost": 0.8,
            "style": 0.0,
            "use_speaker_boost": True,
        },
    }


def test_elevenlabs_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)
    client = ElevenLabsClient(ElevenLabsConfig(), client=httpx.Client(transport=httpx.MockTransport(lambda r: None)))

    assert client.configured is False
    with pytest.raises(TextToSpeechError) as excinfo:
        client.synthesize("Hi", "voice-9")
    assert excinfo.value.status_code == 500


def test_elevenlabs_passes_upstream_status() -> None:
    client = ElevenLabsClient(
        ElevenLabsConfig(),
        api_key="secret",
        client=httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(429, text="quota"))),
    )

    with pytest.raises(TextToSpeechError) as excinfo:
        client.synthesize("Hi", "voice-9")
    assert excinfo.value.status_code == 429
    assert excinfo.value.detail == "quota"
