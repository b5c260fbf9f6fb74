"""Turns stored chat history into LLM / image / video prompts."""
from __future__ import annotations

import re
from typing import Dict, List, Sequence

from haemong_backend.domain.chat.entities.message import Message, MessageType
from .prompts import ChatPrompts

HISTORY_WINDOW = 8

_FOOTER_PATTERNS = (
    re.compile(r"\n\n🎨 \*\*이미지 생성 가능\*\*[\s\S]*$"),
    re.compile(r"\n\n💎 \*\*프리미엄 기능 - 이미지 생성\*\*[\s\S]*$"),
)
_SPECIAL_CHARS = re.compile(r"[^\w\s.,!?]")
_WHITESPACE = re.compile(r"\s+")

_DREAM_MARKERS = ("꿈", "꾸었", "꿈에서", "꿈속")
_INTERPRETATION_MARKERS = (
    "해몽",
    "꿈의 상징",
    "꿈이 나타내는",
    "무의식",
    "길흉",
    "오행",
    "상징적 의미",
    "심리적 상태",
)
_SMALL_TALK_MARKERS = ("안녕", "누구", "뭐야", "해몽이 뭐", "어떻게")
_SMALL_TALK_MAX_LEN = 20


def strip_premium_footers(content: str) -> str:
    for pattern in _FOOTER_PATTERNS:
        content = pattern.sub("", content)
    return content.strip()


class ChatContextBuilder:
    """Builds prompts from persona settings and rolling conversation history."""

    def __init__(self, prompts: type = ChatPrompts, history_window: int = HISTORY_WINDOW):
        self._prompts = prompts
        self.history_window = history_window

    def prepare_llm_messages(
        self,
        dream_content: str,
        gender: str,
        style: str,
        history: Sequence[Message] = (),
    ) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": self._prompts.system_prompt(gender, style)}]
        for message in list(history)[-self.history_window:]:
            if message.type == MessageType.USER.value:
                messages.append({"role": "user", "content": message.content})
            elif message.type == MessageType.BOT.value:
                messages.append({"role": "assistant", "content": strip_premium_footers(message.content)})
        messages.append({
            "role": "user",
            "content": self._prompts.DREAM_ANALYSIS_TEMPLATE.replace("{dream_content}", dream_content),
        })
        return messages

    def prepare_summary_messages(self, interpretation: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self._prompts.SUMMARY_SYSTEM},
            {"role": "user", "content": self._prompts.SUMMARY_USER.format(interpretation=interpretation)},
        ]

    @staticmethod
    def is_actual_interpretation(user_message: str, bot_response: str, history: Sequence[Message]) -> bool:
        """Heuristic: did the bot actually read a dream, or just chat?"""
        described_before = any(
            m.type == MessageType.USER.value and any(k in m.content for k in _DREAM_MARKERS)
            for m in history
        )
        has_reading = any(k in bot_response for k in _INTERPRETATION_MARKERS)
        small_talk = len(user_message) < _SMALL_TALK_MAX_LEN or any(k in user_message for k in _SMALL_TALK_MARKERS)
        return not small_talk and (described_before or "꿈" in user_message) and has_reading

    def with_image_footer(self, response: str, is_premium: bool) -> str:
        footer = self._prompts.PREMIUM_IMAGE_FOOTER if is_premium else self._prompts.UPSELL_IMAGE_FOOTER
        return response + footer

    # ───────────────────────── media prompts ───────────────────────── #

    @staticmethod
    def clean_dream_content(content: str, max_length: int = 200) -> str:
        cleaned = _WHITESPACE.sub(" ", _SPECIAL_CHARS.sub("", content)).strip()
        if len(cleaned) > max_length:
            cleaned = cleaned[:max_length] + "..."
        return cleaned

    def build_image_prompt(self, dream_content: str, style: str, summary: str | None = None) -> str:
        style_prompt = self._prompts.IMAGE_STYLES.get(style, self._prompts.IMAGE_STYLES["western"])
        prompt = self._prompts.IMAGE_PROMPT.format(dream=self.clean_dream_content(dream_content), style=style_prompt)
        if summary:
            prompt += self._prompts.IMAGE_INTERPRETATION_SUFFIX.format(summary=summary.strip())
        return prompt

    def build_video_prompt(self, dream_content: str, style: str) -> str:
        visual = self._prompts.VIDEO_VISUAL_STYLES.get(style, self._prompts.VIDEO_VISUAL_STYLES["eastern"])
        return self._prompts.VIDEO_PROMPT.format(dream=dream_content, visual_style=visual)

    def prepare_video_interpretation_messages(self, dream_content: str, gender: str, style: str) -> List[Dict[str, str]]:
        persona = self._prompts.video_persona(gender, style)
        return [
            {
                "role": "system",
                "content": self._prompts.VIDEO_INTERPRETATION_SYSTEM.format(
                    name=persona.name, description=persona.description, tone=persona.tone
                ),
            },
            {"role": "user", "content": self._prompts.VIDEO_INTERPRETATION_USER.format(dream=dream_content)},
        ]

    def video_title(self, dream_content: str) -> str:
        keywords = " ".join(dream_content.split()[:3])
        return self._prompts.VIDEO_TITLE.format(keywords=keywords)
