"""
Response composer: structured facts -> generated reply text.

The generator's output is returned verbatim. Any failure, including a
timeout, is absorbed into one fixed apology so callers never see an
exception from this layer.
"""

import asyncio
import logging

from phonebot.prompts.prompt_templates import PromptFacts
from phonebot.tools.text_generator import TextGenerator

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "Xin lỗi, tôi không thể trả lời ngay bây giờ. "
    "Bạn có thể hỏi lại hoặc cung cấp thêm thông tin không?"
)


class ResponseComposer:
    """Renders prompts and forwards them to the text generator."""

    def __init__(self, generator: TextGenerator, timeout_sec: float) -> None:
        self._generator = generator
        self._timeout_sec = timeout_sec

    async def compose(self, facts: PromptFacts) -> str:
        prompt = facts.render()
        logger.debug("Prompt: %s", prompt)
        try:
            text = await asyncio.wait_for(self._generator.generate(prompt), self._timeout_sec)
        except asyncio.TimeoutError:
            logger.warning("Text generation timed out after %.1fs", self._timeout_sec)
            return FALLBACK_REPLY
        except Exception as exc:
            logger.warning("Text generation failed: %s", exc)
            return FALLBACK_REPLY
        if not text:
            logger.warning("Text generation returned an empty reply")
            return FALLBACK_REPLY
        return text
