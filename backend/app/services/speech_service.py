# speech service: google cloud speech-to-text for voice journal entries
# short clips use synchronous recognize(), long ones long_running_recognize()

import io
import logging
import wave
from typing import Optional

from google.cloud import speech

from app.config import settings
from app.services.resilience import COGNITIVE, run_blocking

logger = logging.getLogger(__name__)

# safety margin below the 60s synchronous api limit
SYNCHRONOUS_API_LIMIT_SECONDS = 55

# browsers record opus at 48khz
OPUS_SAMPLE_RATE_HERTZ = 48000

# lowest bitrate we expect from a recorder, so size / rate bounds the duration from above
MIN_COMPRESSED_BITRATE = 16000

_ENCODINGS = {
    "audio/wav": speech.RecognitionConfig.AudioEncoding.LINEAR16,
    "audio/x-wav": speech.RecognitionConfig.AudioEncoding.LINEAR16,
    "audio/wave": speech.RecognitionConfig.AudioEncoding.LINEAR16,
    "audio/webm": speech.RecognitionConfig.AudioEncoding.WEBM_OPUS,
    "audio/ogg": speech.RecognitionConfig.AudioEncoding.OGG_OPUS,
    "audio/flac": speech.RecognitionConfig.AudioEncoding.FLAC,
    "audio/x-flac": speech.RecognitionConfig.AudioEncoding.FLAC,
}

_speech_client: Optional[speech.SpeechClient] = None


def get_speech_client() -> speech.SpeechClient:
    global _speech_client
    if _speech_client is None:
        _speech_client = speech.SpeechClient()
    return _speech_client


def _wav_info(audio: bytes) -> tuple[Optional[int], Optional[float]]:
    """(sample rate, duration in seconds) from a wav header, (None, None) if unreadable"""
    try:
        with wave.open(io.BytesIO(audio), "rb") as wf:
            rate = wf.getframerate()
            if rate == 0:
                return None, None
            return rate, wf.getnframes() / float(rate)
    except (wave.Error, EOFError):
        return None, None


def estimate_max_duration(audio: bytes) -> float:
    """upper bound on the length of compressed audio in seconds"""
    return len(audio) * 8 / float(MIN_COMPRESSED_BITRATE)


def build_recognition_config(audio: bytes, content_type: str) -> tuple[speech.RecognitionConfig, Optional[float]]:
    """recognition config for the upload plus its duration.

    wav durations come from the header. compressed formats carry no cheap
    length, so they get an upper bound from the byte size.
    """
    media_type = (content_type or "").split(";")[0].strip().lower()
    encoding = _ENCODINGS.get(media_type, speech.RecognitionConfig.AudioEncoding.ENCODING_UNSPECIFIED)

    config_kwargs = dict(
        encoding=encoding,
        language_code=settings.SPEECH_LANGUAGE,
        enable_automatic_punctuation=True,
    )
    duration = None
    if encoding == speech.RecognitionConfig.AudioEncoding.LINEAR16:
        sample_rate, duration = _wav_info(audio)
        if sample_rate:
            config_kwargs["sample_rate_hertz"] = sample_rate
    else:
        duration = estimate_max_duration(audio)
        if encoding in (
            speech.RecognitionConfig.AudioEncoding.WEBM_OPUS,
            speech.RecognitionConfig.AudioEncoding.OGG_OPUS,
        ):
            config_kwargs["sample_rate_hertz"] = OPUS_SAMPLE_RATE_HERTZ

    return speech.RecognitionConfig(**config_kwargs), duration


def _recognize(config: speech.RecognitionConfig, audio: speech.RecognitionAudio, duration: Optional[float]):
    client = get_speech_client()
    if duration is not None and duration >= SYNCHRONOUS_API_LIMIT_SECONDS:
        logger.info(f"Using long-running recognition for {duration:.1f}s of audio")
        operation = client.long_running_recognize(config=config, audio=audio)
        return operation.result(timeout=int(duration) + 60)
    return client.recognize(config=config, audio=audio)


async def transcribe(audio: bytes, content_type: str) -> str:
    """transcribe an audio upload, returns "" if no speech was recognised"""
    if not audio:
        raise ValueError("Audio file is null or empty")

    config, duration = build_recognition_config(audio, content_type)
    recognition_audio = speech.RecognitionAudio(content=audio)

    try:
        response = await run_blocking(COGNITIVE, _recognize, config, recognition_audio, duration)
    except Exception as e:
        logger.error(f"Speech-to-text failed: {e}")
        raise

    segments = [
        result.alternatives[0].transcript.strip()
        for result in response.results
        if result.alternatives
    ]
    transcript = " ".join(s for s in segments if s)
    if not transcript:
        logger.info("No speech detected in audio")
    else:
        logger.info(f"Transcribed {len(transcript)} characters of speech")
    return transcript
