"""
Rule and FAQ packs for the auto-written info channels.

Packs are keyed by server type: default, gaming, crypto, support, content,
professional. The interview either names one or leaves it to keyword
detection on the "what is this server about" answer.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class RuleTemplate:
    title: str
    rules: Tuple[str, ...]
    footer: str

    def render(self) -> str:
        numbered = "\n".join(f"{i}. {rule}" for i, rule in enumerate(self.rules, start=1))
        return f"{numbered}\n\n{self.footer}"


FAQEntry = Tuple[str, str]

RULE_TEMPLATES: Dict[str, RuleTemplate] = {
    "default": RuleTemplate(
        "📜 Server Rules",
        (
            "Be respectful and kind to all members",
            "No spam, advertising, or self-promotion",
            "Keep content appropriate and SFW",
            "Follow Discord Terms of Service",
            "Listen to staff and moderators",
            "Use channels for their intended purpose",
        ),
        "Violations may result in warnings, mutes, or bans.",
    ),
    "gaming": RuleTemplate(
        "🎮 Community Rules",
        (
            "Be respectful to all players and staff",
            "No cheating, hacking, or exploiting",
            "Keep voice channels clear during gameplay",
            "No excessive toxicity or rage",
            "Report bugs/issues through proper channels",
            "Follow game-specific rules in dedicated channels",
        ),
        "Fair play keeps the community fun for everyone!",
    ),
    "crypto": RuleTemplate(
        "💎 Server Guidelines",
        (
            "DYOR - Do Your Own Research",
            "No financial advice or guaranteed returns",
            "Verify all links before clicking",
            "No impersonation of team members or influencers",
            "Keep FUD and price discussion in designated channels",
            "Respect others' investment decisions",
        ),
        "Stay safe, stay informed. NFA.",
    ),
    "support": RuleTemplate(
        "🛟 Support Server Rules",
        (
            "Search existing threads before posting",
            "Provide clear details when asking for help",
            "Be patient with support staff and volunteers",
            "No spam or duplicate tickets",
            "Mark your issue as solved when resolved",
            "Help others when you can",
        ),
        "Quality support requires quality questions.",
    ),
    "content": RuleTemplate(
        "🎥 Creator Community Rules",
        (
            "Support and uplift fellow creators",
            "No self-promotion outside designated channels",
            "Respect copyright and intellectual property",
            "Keep feedback constructive and helpful",
            "No drama or gossip about other creators",
            "Celebrate wins together!",
        ),
        "We rise by lifting others.",
    ),
    "professional": RuleTemplate(
        "💼 Professional Guidelines",
        (
            "Maintain professional conduct at all times",
            "Respect confidentiality and privacy",
            "No solicitation without permission",
            "Keep discussions on-topic and productive",
            "Use appropriate channels for networking",
            "Report violations to moderators privately",
        ),
        "Professional behavior builds professional networks.",
    ),
}

FAQ_TEMPLATES: Dict[str, Tuple[FAQEntry, ...]] = {
    "default": (
        ("How do I get started?", "Check out the rules and introduce yourself in chat!"),
        ("How do I contact staff?", "Ping a moderator or admin, or open a support ticket."),
        ("Can I suggest features?", "Absolutely! Share your ideas in the community channels."),
    ),
    "gaming": (
        ("How do I join games?", "Check the LFG channels or create your own party!"),
        ("Where do I report bugs?", "Use the bug-reports channel with detailed info."),
        ("Can I stream gameplay here?", "Yes! Use our designated streaming channels."),
    ),
    "crypto": (
        ("Is this financial advice?", "No. Always DYOR and never invest more than you can lose."),
        ("How do I verify team members?", "Check roles and verify in our official channels."),
        ("Where can I discuss price?", "Use the trading or price-talk channels only."),
    ),
    "support": (
        ("How do I get help?", "Create a support ticket or ask in the help channel."),
        ("How long until I get a response?", "Usually within 24 hours, often much faster!"),
        ("Can I help others?", "Yes! Helpful community members often get recognized."),
    ),
    "content": (
        ("Can I promote my content?", "Yes, in the self-promo channel following the posting schedule."),
        ("How do I collaborate?", "Check the collab channel or reach out to creators directly!"),
        ("Where do I share feedback?", "Use the feedback channel - constructive criticism only!"),
    ),
    "professional": (
        ("How do I network here?", "Introduce yourself and engage in relevant channels."),
        ("Can I hire from this community?", "Use the opportunities channel with proper job posts."),
        ("How do I report issues?", "Contact moderators via DM or the modmail system."),
    ),
}

# keyword lists are checked in order; first hit wins
_RULE_KEYWORDS: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("gaming", ("gaming", "game", "player")),
    ("crypto", ("crypto", "nft", "token", "defi")),
    ("support", ("support", "help", "bot")),
    ("content", ("content", "creator", "stream", "youtube")),
    ("professional", ("professional", "business", "network")),
)
_FAQ_KEYWORDS: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("gaming", ("gaming", "game")),
    ("crypto", ("crypto", "nft", "token")),
    ("support", ("support", "help", "bot")),
    ("content", ("content", "creator", "stream")),
    ("professional", ("professional", "business")),
)

# interview answers naming a template style
_CHOICE_KEYWORDS: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("gaming", ("gaming",)),
    ("crypto", ("crypto", "defi")),
    ("support", ("support",)),
    ("content", ("content",)),
    ("professional", ("professional", "business")),
)


def _match(text: Optional[str], table: Sequence[Tuple[str, Tuple[str, ...]]]) -> Optional[str]:
    lower = (text or "").lower()
    for key, words in table:
        if any(w in lower for w in words):
            return key
    return None


def infer_rule_template(text: Optional[str]) -> str:
    return _match(text, _RULE_KEYWORDS) or "default"


def infer_faq_template(text: Optional[str]) -> str:
    return _match(text, _FAQ_KEYWORDS) or "default"


def template_key_from_choice(choice: Optional[str]) -> Optional[str]:
    """Map an explicit template answer to a pack key; ``None`` means auto-detect."""
    return _match(choice, _CHOICE_KEYWORDS)


def render_faq(entries: Sequence[FAQEntry]) -> str:
    return "\n\n".join(f"**Q: {q}**\nA: {a}" for q, a in entries)


def _has_channel(channels: List[Mapping[str, Any]], needle: str) -> bool:
    return any(needle in str(ch.get("name") or "").lower() for ch in channels)


def inject_info_channels(
    blueprint: Mapping[str, Any],
    server_about: Optional[str],
    template_key: Optional[str],
    server_name: str,
) -> Dict[str, Any]:
    """Return a copy of ``blueprint`` with rules, about and FAQ channels added.

    The channels go into the first category and only when that category has
    no channel whose name already contains ``rule``, ``about`` or ``faq``.
    Rules are prepended, read-only for everyone; about and FAQ are appended.
    """
    result = copy.deepcopy(dict(blueprint))
    categories = result.get("categories") or {}
    if not categories:
        return result

    first = next(iter(categories))
    channels = list(categories[first] or [])
    rules = RULE_TEMPLATES.get(template_key or "") or RULE_TEMPLATES[infer_rule_template(server_about)]
    faq = FAQ_TEMPLATES.get(template_key or "") or FAQ_TEMPLATES[infer_faq_template(server_about)]

    if not _has_channel(channels, "rule"):
        channels.insert(
            0,
            {
                "name": "rules",
                "type": "text",
                "permissionsPreset": "public-readonly",
                "message": {"title": rules.title, "body": rules.render()},
            },
        )
    if not _has_channel(channels, "about"):
        about = server_about or "A community server."
        channels.append(
            {
                "name": "about",
                "type": "text",
                "message": {
                    "title": "🧩 About This Server",
                    "body": (
                        f"Welcome to {server_name}!\n\n{about}\n\n"
                        "We're building a vibrant community - join the conversation and have fun!"
                    ),
                },
            }
        )
    if not _has_channel(channels, "faq"):
        channels.append(
            {
                "name": "faq",
                "type": "text",
                "message": {"title": "❓ Frequently Asked Questions", "body": render_faq(faq)},
            }
        )

    categories[first] = channels
    result["categories"] = categories
    return result
