from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import discord
from discord.ext import commands

from .templates import template_key_from_choice

log = logging.getLogger("guildsmith.ai.interview")

ANSWER_TIMEOUT_SECONDS = 180


@dataclass(frozen=True)
class Question:
    text: str
    suggestions: Sequence[str] = ()


SERVER_TYPES = (
    "Gaming community",
    "Crypto/NFT project",
    "Content creator fan server",
    "Study/education group",
    "Business/professional network",
    "Support/help desk",
)
STYLES = (
    "neon-gold (vibrant, energetic)",
    "minimal-clean (simple, professional)",
    "dark-cyberpunk (edgy, tech)",
    "pastel-cozy (warm, friendly)",
    "streamer-purple (gaming, content)",
)
CATEGORY_IDEAS = (
    "SERVER INFO, COMMUNITY, GENERAL",
    "WELCOME, RULES, CHAT, VOICE",
    "INFO, SUPPORT, HELP, GENERAL",
    "ANNOUNCEMENTS, DISCUSSION, MEDIA",
    "STAFF, PUBLIC, COMMUNITY",
)
ROLE_IDEAS = (
    "Admin, Moderator, Member",
    "Owner, Admin, Mod, VIP, Verified",
    "Admin, Support, Premium, Member",
    "Founder, Staff, Community Manager",
)
PRIVATE_AREAS = (
    "staff-chat, mod-logs",
    "admin-only, team-planning",
    "staff, moderator-chat, private-logs",
    "management, internal",
)
RULE_TEMPLATE_CHOICES = (
    "Auto-detect from server type",
    "Gaming community rules",
    "Crypto/DeFi guidelines",
    "Support server rules",
    "Content creator rules",
    "Professional/business rules",
)

QUESTIONS = (
    Question("What is this server about?", SERVER_TYPES),
    Question("Describe the vibe/style you want.", STYLES),
    Question("List categories you want (comma-separated).", CATEGORY_IDEAS),
    Question("Do you want auto-written rules/about/FAQ? (yes/no)"),
    Question("List roles with any special permissions.", ROLE_IDEAS),
    Question("List any private/staff channels or role-restricted areas.", PRIVATE_AREAS),
    Question("Do you want community / welcome screen enabled? (yes/no)"),
)
ABOUT_INDEX = 0
INFO_CHANNELS_INDEX = 3
TEMPLATE_QUESTION = Question("Which rule template style do you prefer?", RULE_TEMPLATE_CHOICES)


@dataclass
class InterviewResult:
    answers: List[str] = field(default_factory=list)
    template_key: Optional[str] = None

    @property
    def about(self) -> str:
        return self.answers[ABOUT_INDEX] if self.answers else ""

    @property
    def wants_info_channels(self) -> bool:
        if len(self.answers) <= INFO_CHANNELS_INDEX:
            return False
        return "yes" in self.answers[INFO_CHANNELS_INDEX].lower()


def format_question(question: Question) -> str:
    text = f"📋 **{question.text}**"
    if question.suggestions:
        text += "\n\n💡 **Suggestions:**"
        for i, suggestion in enumerate(question.suggestions, start=1):
            text += f"\n  {i}. {suggestion}"
        text += f"\n\n_Type your answer or pick a number (1-{len(question.suggestions)})_"
    return text


def resolve_answer(question: Question, answer: str) -> str:
    """Replace a numeric pick with the suggestion it refers to."""
    answer = (answer or "").strip()
    if question.suggestions and answer.isdigit():
        idx = int(answer) - 1
        if 0 <= idx < len(question.suggestions):
            return question.suggestions[idx]
    return answer


class DMInterview:
    """Asks the interview questions in a DM and collects the answers."""

    def __init__(self, bot: commands.Bot, user: discord.abc.User, timeout: float = ANSWER_TIMEOUT_SECONDS) -> None:
        self.bot = bot
        self.user = user
        self.timeout = timeout

    async def ask(self, dm: discord.DMChannel, question: Question) -> str:
        await dm.send(format_question(question))

        def check(message: discord.Message) -> bool:
            return message.author.id == self.user.id and message.channel.id == dm.id

        try:
            message = await self.bot.wait_for("message", check=check, timeout=self.timeout)
        except asyncio.TimeoutError:
            log.info("Interview question timed out for user %s: %s", self.user.id, question.text[:30])
            await dm.send("⏱️ Timeout. Leaving blank. You can rerun /setup run later to refine.")
            return ""

        raw = (message.content or "").strip()
        answer = resolve_answer(question, raw)
        if answer != raw:
            await dm.send(f"✅ Selected: **{answer}**")
        log.debug("Interview answer for %r: %s", question.text[:30], answer[:60])
        return answer

    async def run(self) -> InterviewResult:
        dm = await self.user.create_dm()
        result = InterviewResult()
        for index, question in enumerate(QUESTIONS):
            answer = await self.ask(dm, question)
            result.answers.append(answer)
            if index == INFO_CHANNELS_INDEX and "yes" in answer.lower():
                result.template_key = template_key_from_choice(await self.ask(dm, TEMPLATE_QUESTION))
        return result
