"""Speech provider adapters.

Every provider turns one Task into one audio file and reports failures as
ProviderError, or ProviderCapacityError when the request may be retried
later. Segmentation and grouping never live here; providers only differ in
their voice map, the markup they accept and the call they make.
"""

import asyncio
import io
import logging
import os

import edge_tts
import requests
from pydub import AudioSegment

from subtitle_dubber.audio import export_audio
from subtitle_dubber.config import get_env
from subtitle_dubber.constants import (
    AZURE_VOICE_MAP,
    EDGE_VOICE_MAP,
    ELEVENLABS_MODEL,
    ELEVENLABS_TIMEOUT,
    ELEVENLABS_URL,
    ELEVENLABS_VOICE_MAP,
)
from subtitle_dubber.errors import InputError, ProviderCapacityError, ProviderError
from subtitle_dubber.models import Task

logger = logging.getLogger(__name__)

_AZURE_CAPACITY_MARKERS = ("ResourceExhausted", "No free synthesizer", "error code: 1013")


def _is_mp3(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in ("", ".mp3")


def write_mp3_bytes(data: bytes, output_path: str) -> None:
    """Store MP3 bytes at output_path, transcoding when it names another format."""
    if _is_mp3(output_path):
        with open(output_path, "wb") as f:
            f.write(data)
        return
    export_audio(AudioSegment.from_file(io.BytesIO(data), format="mp3"), output_path)


def check_output(provider: str, output_path: str) -> None:
    """A missing or 0-byte file counts as a failed synthesis."""
    if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
        raise ProviderError(provider, f"produced no audio at {output_path}")


class SpeechProvider:
    """Base class for speech providers.

    Subclasses set name, voice_map and default_policy and implement
    synthesize().
    """

    name = ""
    voice_map: dict[str, str] = {}
    default_policy = "normalize"

    def resolve_voice(self, lang: str, voice_key: str | None = None) -> str:
        """Look up the voice for lang, optionally a named variant ("en-luis").

        Regional tags fall back to their base language ("en-US" -> "en").
        """
        candidates = [lang, lang.split("-")[0]]
        for candidate in dict.fromkeys(candidates):
            key = f"{candidate}-{voice_key}" if voice_key else candidate
            if key in self.voice_map:
                return self.voice_map[key]
        wanted = f"{lang}-{voice_key}" if voice_key else lang
        raise InputError(f"No {self.name} voice configured for {wanted!r}")

    def synthesize(self, task: Task, output_path: str) -> None:
        raise NotImplementedError


class EdgeProvider(SpeechProvider):
    """Microsoft Edge read-aloud voices via edge-tts (plain text only)."""

    name = "edge"
    voice_map = EDGE_VOICE_MAP
    default_policy = "normalize"

    def synthesize(self, task: Task, output_path: str) -> None:
        target = output_path if _is_mp3(output_path) else output_path + ".mp3"
        try:
            communicate = edge_tts.Communicate(task.text, task.voice)
            asyncio.run(communicate.save(target))
        except Exception as e:
            if getattr(e, "status", None) == 429:
                raise ProviderCapacityError(self.name, str(e)) from e
            raise ProviderError(self.name, str(e)) from e

        check_output(self.name, target)
        if target != output_path:
            with open(target, "rb") as f:
                write_mp3_bytes(f.read(), output_path)
            os.remove(target)


class AzureProvider(SpeechProvider):
    """Azure Speech synthesis of the full SSML document.

    Needs AZURE_AI_KEY and AZURE_AI_REGION, and the azure extra installed.
    """

    name = "azure"
    voice_map = AZURE_VOICE_MAP
    default_policy = "stretch"

    def synthesize(self, task: Task, output_path: str) -> None:
        error_details = self._speak_ssml(task.markup, task.voice, output_path)
        if error_details is not None:
            if any(marker in error_details for marker in _AZURE_CAPACITY_MARKERS):
                raise ProviderCapacityError(self.name, error_details)
            raise ProviderError(self.name, error_details)
        check_output(self.name, output_path)

    def _speak_ssml(self, ssml: str, voice: str, output_path: str) -> str | None:
        """Run the SDK call. Returns None on success, else the error details."""
        try:
            import azure.cognitiveservices.speech as speechsdk
        except ImportError as e:
            raise InputError(
                "The azure provider needs the Azure Speech SDK: pip install 'subtitle-dubber[azure]'"
            ) from e

        speech_config = speechsdk.SpeechConfig(
            subscription=get_env("AZURE_AI_KEY"),
            region=get_env("AZURE_AI_REGION"),
        )
        speech_config.speech_synthesis_voice_name = voice
        if _is_mp3(output_path):
            output_format = speechsdk.SpeechSynthesisOutputFormat.Audio16Khz32KBitRateMonoMp3
        else:
            output_format = speechsdk.SpeechSynthesisOutputFormat.Riff24Khz16BitMonoPcm
        speech_config.set_speech_synthesis_output_format(output_format)

        audio_config = speechsdk.audio.AudioOutputConfig(filename=output_path)
        synthesizer = speechsdk.SpeechSynthesizer(speech_config=speech_config, audio_config=audio_config)
        result = synthesizer.speak_ssml_async(ssml).get()

        if result.reason == speechsdk.ResultReason.SynthesizingAudioCompleted:
            return None
        details = result.cancellation_details
        return f"{details.reason}: {details.error_details}"


class ElevenLabsProvider(SpeechProvider):
    """ElevenLabs text-to-speech REST API. Needs ELEVENLABS_API_KEY."""

    name = "elevenlabs"
    voice_map = ELEVENLABS_VOICE_MAP
    default_policy = "normalize"

    def synthesize(self, task: Task, output_path: str) -> None:
        headers = {
            "Content-Type": "application/json",
            "xi-api-key": get_env("ELEVENLABS_API_KEY"),
        }
        data = {
            "text": task.text,
            "model_id": ELEVENLABS_MODEL,
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
        }
        try:
            response = requests.post(
                ELEVENLABS_URL.format(voice_id=task.voice),
                json=data,
                headers=headers,
                timeout=ELEVENLABS_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ProviderError(self.name, str(e)) from e

        if response.status_code == 429:
            raise ProviderCapacityError(self.name, response.text)
        if response.status_code != 200:
            raise ProviderError(self.name, f"HTTP {response.status_code}: {response.text}")
        if not response.content:
            raise ProviderError(self.name, "empty response body")

        write_mp3_bytes(response.content, output_path)
        logger.debug("Synthesized audio saved to %s", output_path)


PROVIDERS: dict[str, type[SpeechProvider]] = {
    "edge": EdgeProvider,
    "azure": AzureProvider,
    "elevenlabs": ElevenLabsProvider,
}


def get_provider(name: str) -> SpeechProvider:
    try:
        return PROVIDERS[name]()
    except KeyError:
        raise InputError(f"Unknown provider: {name!r} (available: {', '.join(PROVIDERS)})") from None
