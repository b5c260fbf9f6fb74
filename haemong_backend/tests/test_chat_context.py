"""Prompt building, interpretation heuristics and the AI/message services."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio

from haemong_backend.context.chat import ChatContextBuilder, ChatPrompts, strip_premium_footers
from haemong_backend.domain.chat.entities.chat_room import ChatRoom
from haemong_backend.domain.chat.entities.message import Message, MessageType
from haemong_backend.services.chat.ai_service import AiService
from haemong_backend.services.chat.message_service import MessageService

DREAM = "어젯밤 꿈에서 커다란 용이 하늘로 날아오르는 것을 보았어요. 너무 생생했습니다."
READING = "용이 하늘로 오르는 꿈은 길흉으로 보면 크게 길한 꿈입니다. 꿈의 상징으로 용은 성공을 뜻합니다."


def msg(type_: MessageType, content: str) -> Message:
    return Message(id=uuid4(), chat_room_id=uuid4(), type=type_.value, content=content, interpretation=False)


@pytest.fixture
def builder():
    return ChatContextBuilder()


class TestPromptBuilding:

    def test_llm_messages_use_persona_and_trim_history(self, builder):
        history = [msg(MessageType.USER, f"user {i}") for i in range(12)]
        messages = builder.prepare_llm_messages(DREAM, "female", "western", history)

        assert messages[0] == {"role": "system", "content": ChatPrompts.system_prompt("female", "western")}
        assert len(messages) == 1 + builder.history_window + 1
        assert messages[1]["content"] == "user 4"
        assert DREAM in messages[-1]["content"]

    def test_history_bot_messages_lose_footers(self, builder):
        bot = msg(MessageType.BOT, READING + ChatPrompts.PREMIUM_IMAGE_FOOTER)
        messages = builder.prepare_llm_messages(DREAM, "male", "eastern", [bot])
        assert messages[1] == {"role": "assistant", "content": READING}

    def test_unknown_persona_uses_default_prompt(self):
        assert ChatPrompts.system_prompt("other", "style") == ChatPrompts.system_prompt("male", "eastern")

    def test_footers_round_trip(self, builder):
        assert strip_premium_footers(builder.with_image_footer(READING, is_premium=True)) == READING
        assert strip_premium_footers(builder.with_image_footer(READING, is_premium=False)) == READING
        assert "💎" in builder.with_image_footer(READING, is_premium=False)

    def test_clean_dream_content(self, builder):
        cleaned = builder.clean_dream_content("용이 @#$ 날았다!!  \n 정말로~", max_length=200)
        assert cleaned == "용이 날았다!! 정말로"
        assert builder.clean_dream_content("가" * 250).endswith("...")
        assert len(builder.clean_dream_content("가" * 250)) == 203

    def test_image_prompt_includes_style_and_summary(self, builder):
        prompt = builder.build_image_prompt(DREAM, "eastern", summary=" 성공과 상승 ")
        assert ChatPrompts.IMAGE_STYLES["eastern"] in prompt
        assert prompt.endswith("Symbolic meaning to convey: 성공과 상승")

    def test_video_title_uses_first_three_words(self, builder):
        assert builder.video_title("하늘을 나는 고래를 봤어요") == "🌙 꿈해몽: 하늘을 나는 고래를에 대한 꿈의 의미"


class TestInterpretationHeuristic:

    def test_dream_with_reading_counts(self):
        assert ChatContextBuilder.is_actual_interpretation(DREAM, READING, []) is True

    def test_greeting_is_small_talk(self):
        assert ChatContextBuilder.is_actual_interpretation("안녕하세요 반가워요 오늘 기분이 좋네요", READING, []) is False

    def test_short_message_is_small_talk(self):
        assert ChatContextBuilder.is_actual_interpretation("꿈 해몽 해주세요", READING, []) is False

    def test_reply_without_reading_does_not_count(self):
        assert ChatContextBuilder.is_actual_interpretation(DREAM, "조금 더 자세히 말씀해 주시겠어요?", []) is False

    def test_follow_up_after_described_dream(self):
        history = [msg(MessageType.USER, DREAM)]
        follow_up = "그 용이 황금색이었는데 그것도 의미가 있을까요?"
        assert ChatContextBuilder.is_actual_interpretation(follow_up, READING, history) is True


@pytest_asyncio.fixture
async def llm():
    llm = AsyncMock()
    llm.generate_response.return_value = READING
    return llm


class TestAiService:

    @pytest.mark.asyncio
    async def test_llm_failure_degrades_to_apology(self, llm, builder):
        llm.generate_response.side_effect = RuntimeError("boom")
        reply = await AiService(llm, builder).generate_dream_interpretation(DREAM, "male", "eastern")
        assert reply == ChatPrompts.SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_empty_reply_uses_fallback(self, llm, builder):
        llm.generate_response.return_value = ""
        reply = await AiService(llm, builder).generate_dream_interpretation(DREAM, "male", "eastern")
        assert reply == ChatPrompts.INTERPRETATION_FALLBACK

    @pytest.mark.asyncio
    async def test_summary_falls_back_to_input(self, llm, builder):
        llm.generate_response.side_effect = RuntimeError("boom")
        assert await AiService(llm, builder).summarize_interpretation(READING) == READING

    def test_default_bot_settings(self):
        assert AiService.default_bot_settings() == ("female", "eastern")


class TestMessageService:

    @pytest_asyncio.fixture
    async def deps(self, llm, builder):
        room = ChatRoom(id=uuid4(), user_id=uuid4(), title="t", bot_settings_id=2, is_active=True)
        rooms = AsyncMock()
        rooms.get_owned_chat_room.return_value = room
        repo = AsyncMock()
        repo.list_recent.return_value = []
        repo.create.side_effect = lambda message, session: message
        auth = AsyncMock()
        auth.is_premium_user.return_value = False
        service = MessageService(repo, rooms, AiService(llm, builder), auth, builder)
        return service, repo, room, llm

    @pytest.mark.asyncio
    async def test_send_message_saves_both_turns(self, deps, session):
        service, repo, room, llm = deps
        result = await service.send_message(room.user_id, room.id, DREAM, session)

        assert result["user_message"].content == DREAM
        assert result["user_message"].type == "user"
        bot = result["bot_message"]
        assert bot.type == "bot"
        assert bot.interpretation is True
        assert bot.content.startswith(READING)
        assert "💎" in bot.content
        assert repo.create.await_count == 2

    @pytest.mark.asyncio
    async def test_history_excludes_current_message(self, deps, session):
        service, repo, room, llm = deps
        await service.send_message(room.user_id, room.id, DREAM, session)

        sent = llm.generate_response.call_args.args[0]
        assert sum(DREAM in m["content"] for m in sent) == 1

    @pytest.mark.asyncio
    async def test_non_empty_room_returns_its_first_message(self, deps, session):
        service, repo, room, llm = deps
        first = Message(id=uuid4(), chat_room_id=room.id, type="bot", content="안녕하세요")
        repo.list_by_room.return_value = [first]

        assert await service.initialize_chat_room(room, session) is first
        repo.list_by_room.assert_awaited_once_with(room.id, 1, 0, session)
        repo.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_room_gets_welcome(self, deps, session):
        service, repo, room, llm = deps
        repo.list_by_room.return_value = []

        welcome = await service.initialize_chat_room(room, session)

        assert welcome.type == "bot"
        assert welcome.content
        repo.create.assert_awaited_once()
