"""Google Text-to-Speech provider."""

import logging
from io import BytesIO

from gtts import gTTS, gTTSError

from core.errors import ExternalServiceError, ValidationError
from core.interfaces import SpeechSynthesizer

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 200


class GTTSSynthesizer(SpeechSynthesizer):
    """Speaks Chinese text through gTTS and returns MP3 bytes."""

    def __init__(self, language: str = 'zh-CN'):
        self.language = language

    def synthesize(self, text: str) -> bytes:
        text = (text or '').strip()
        if not text:
            raise ValidationError("Text is required")
        if len(text) > MAX_TEXT_LENGTH:
            raise ValidationError(f"Text must be at most {MAX_TEXT_LENGTH} characters")

        buffer = BytesIO()
        try:
            gTTS(text=text, lang=self.language).write_to_fp(buffer)
        except (gTTSError, ValueError) as e:
            logger.error(f"TTS failed for {text!r}: {e}")
            raise ExternalServiceError(f"Speech synthesis failed: {e}", service='gtts') from e
        return buffer.getvalue()
