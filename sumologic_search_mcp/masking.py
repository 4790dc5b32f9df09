"""
Sensitive text masking for search results.

A ``MaskingPolicy`` is an ordered list of regex rules. Each match is replaced
by ``MASK``; if a rule's pattern defines a ``keep`` group, that part of the
match (usually a ``key=`` prefix) is preserved in front of the mask. Rules
never match the mask itself, so masking already masked text is a no-op.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Match, Optional, Pattern

logger = logging.getLogger(__name__)

MASK = "***MASKED***"


@dataclass(frozen=True)
class MaskingRule:
    """A single named redaction pattern."""
    name: str
    pattern: Pattern[str]

    def apply(self, text: str) -> str:
        return self.pattern.sub(self._replace, text)

    def _replace(self, match: Match[str]) -> str:
        if "keep" in self.pattern.groupindex:
            return (match.group("keep") or "") + MASK
        return MASK


_SECRET_KEYS = (
    r"access[_-]?key(?:[_-]?id)?|secret[_-]?key|api[_-]?key|apikey|"
    r"access[_-]?token|auth[_-]?token|refresh[_-]?token|id[_-]?token|token|"
    r"client[_-]?secret|secret|password|passwd|pwd|session[_-]?id|"
    r"private[_-]?key|credentials?"
)

DEFAULT_RULES: List[MaskingRule] = [
    MaskingRule(
        "private_key_block",
        re.compile(
            r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----"
        ),
    ),
    MaskingRule(
        "jwt",
        re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
    ),
    MaskingRule(
        "bearer_token",
        re.compile(r"(?P<keep>\bbearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
    ),
    MaskingRule(
        "basic_auth",
        re.compile(
            r"(?P<keep>\bauthorization[\"']?\s*[:=]\s*[\"']?basic\s+)[A-Za-z0-9+/]+=*",
            re.IGNORECASE,
        ),
    ),
    MaskingRule(
        "key_value_secret",
        re.compile(
            r"(?P<keep>(?:" + _SECRET_KEYS + r")[\"']?\s*[:=]\s*[\"']?)"
            r"(?!\*\*\*MASKED\*\*\*)[^\s\"'&,;]+",
            re.IGNORECASE,
        ),
    ),
    MaskingRule(
        "aws_access_key_id",
        re.compile(r"\b(?:AKIA|ASIA)[0-9A-Z]{16}\b"),
    ),
    MaskingRule(
        "email",
        re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"),
    ),
]


class MaskingPolicy:
    """Ordered set of masking rules applied to free text.

    Attributes:
        rules: Rules applied in order
        version: Label identifying the rule set, included in logs
    """

    def __init__(self, rules: Iterable[MaskingRule], version: str = "custom"):
        self.rules = list(rules)
        self.version = version

    @classmethod
    def default(cls) -> "MaskingPolicy":
        return cls(DEFAULT_RULES, version="default-1")

    def with_patterns(self, patterns: Iterable[str]) -> "MaskingPolicy":
        """Return a copy of this policy extended with extra regex patterns.

        Args:
            patterns: Regular expressions; a ``keep`` named group is preserved

        Raises:
            re.error: If a pattern does not compile
        """
        extra = [
            MaskingRule(f"custom_{index}", re.compile(pattern))
            for index, pattern in enumerate(patterns)
        ]
        if not extra:
            return self
        return MaskingPolicy(self.rules + extra, version=f"{self.version}+{len(extra)}")

    def mask(self, text: Any) -> str:
        """Mask sensitive substrings in ``text``.

        Never raises: ``None`` becomes an empty string and other non-string
        values are converted with ``str()`` before masking.
        """
        if text is None:
            return ""
        if not isinstance(text, str):
            text = str(text)
        if not text:
            return text
        for rule in self.rules:
            text = rule.apply(text)
        return text


_policy: MaskingPolicy = MaskingPolicy.default()


def get_masking_policy() -> MaskingPolicy:
    """Return the process-wide masking policy."""
    return _policy


def set_masking_policy(policy: Optional[MaskingPolicy]) -> None:
    """Replace the process-wide masking policy; ``None`` restores the default."""
    global _policy
    _policy = policy or MaskingPolicy.default()
    logger.info(
        "Masking policy configured",
        extra={"policy_version": _policy.version, "rule_count": len(_policy.rules)}
    )


def mask_sensitive_info(text: Any) -> str:
    """Mask sensitive substrings using the process-wide policy."""
    return _policy.mask(text)
