"""ClassifierPolicy — deterministic keyword classification of issue descriptions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from resolution_engine.domain.value_objects.enums import Confidence, SkillGroupCode

# Top score must exceed this to be a strong (high-confidence) match
STRONG_MATCH_THRESHOLD = 1.5

# Runner-up within this distance of the top score makes the result ambiguous
AMBIGUITY_MARGIN = 0.5

CONFIDENCE_SCORES: dict[Confidence, int] = {
    Confidence.HIGH: 90,
    Confidence.MEDIUM: 60,
    Confidence.LOW: 20,
}


@dataclass(frozen=True)
class KeywordRule:
    """One dictionary entry: any of ``keywords`` votes for ``issue_code``."""

    keywords: frozenset[str]
    issue_code: str
    skill_group_code: SkillGroupCode
    weight: float = 1.0


@dataclass(frozen=True)
class ClassificationResult:
    issue_code: str | None
    confidence: Confidence
    skill_group_code: SkillGroupCode | None
    score: float = 0.0
    matched_keywords: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_vague(self) -> bool:
        return self.confidence == Confidence.LOW or self.issue_code is None

    @property
    def confidence_score(self) -> int:
        return CONFIDENCE_SCORES[self.confidence]


def _rule(keywords: tuple[str, ...], issue_code: str, group: SkillGroupCode, weight: float = 1.0) -> KeywordRule:
    return KeywordRule(frozenset(keywords), issue_code, group, weight)


T, P, V, S = (
    SkillGroupCode.TECHNICAL,
    SkillGroupCode.PLUMBING,
    SkillGroupCode.VENDOR,
    SkillGroupCode.SOFT_SERVICES,
)

# Declaration order matters: it breaks exact score ties.
DEFAULT_RULES: tuple[KeywordRule, ...] = (
    _rule(("ac", "aircon", "cooling", "hvac", "thermostat", "temperature"), "ac_breakdown", T),
    _rule(("air conditioning", "air-conditioning", "not cooling"), "ac_breakdown", T, 2.0),
    _rule(("power", "electricity", "outage", "blackout", "electrical", "socket", "switch", "fuse", "breaker"), "power_outage", T),
    _rule(("no power", "power cut", "tripped"), "power_outage", T, 2.0),
    _rule(("wifi", "wi-fi", "internet", "network", "lan", "router"), "wifi_down", T),
    _rule(("light", "lighting", "bulb", "lamp", "led", "dark"), "lighting_issue", T),
    _rule(("tube light",), "lighting_issue", T, 2.0),
    _rule(("door", "lock", "window", "glass", "hinge"), "door_window_repair", T),
    _rule(("leak", "leakage", "drip", "seepage", "pipe", "tap", "faucet"), "water_leakage", P),
    _rule(("water leak", "burst pipe"), "water_leakage", P, 2.0),
    _rule(("washroom", "toilet", "bathroom", "restroom", "flush", "urinal", "drain", "clogged", "blocked drain"), "washroom_issue", P),
    _rule(("lift", "elevator", "escalator"), "lift_breakdown", V),
    _rule(("lift stuck", "elevator stuck"), "lift_breakdown", V, 2.0),
    _rule(("fire alarm", "fire extinguisher", "sprinkler", "smoke detector"), "fire_safety", V, 2.0),
    _rule(("cctv", "camera", "surveillance", "biometric", "card reader", "access control"), "security_systems", V),
    _rule(("parking", "boom barrier", "gate"), "parking_access", V),
    _rule(("clean", "cleaning", "dirty", "dust", "dusty", "stain", "spill", "mop", "sweep", "housekeeping"), "cleaning_request", S),
    _rule(("wet floor", "deep cleaning"), "cleaning_request", S, 2.0),
    _rule(("pest", "cockroach", "rodent", "rat", "mice", "termite"), "pest_control", S),
    _rule(("pantry", "cafeteria", "kitchen", "microwave", "fridge", "coffee machine"), "pantry_service", S),
    _rule(("trash", "garbage", "waste", "bin", "dustbin"), "waste_disposal", S),
    _rule(("smell", "odor", "odour", "tissue", "soap", "towel", "sanitizer", "hygiene"), "hygiene_supplies", S),
)


def _compile(keyword: str) -> re.Pattern[str]:
    # Whole-word/phrase match so "ac" does not hit "back" or "place"
    return re.compile(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)")


class IssueDictionary:
    """Immutable keyword dictionary, compiled once and shared read-only."""

    def __init__(self, rules: tuple[KeywordRule, ...] | list[KeywordRule]):
        self._rules: tuple[KeywordRule, ...] = tuple(rules)
        self._patterns: tuple[tuple[tuple[str, re.Pattern[str]], ...], ...] = tuple(
            tuple((kw, _compile(kw.lower())) for kw in sorted(rule.keywords))
            for rule in self._rules
        )
        order: dict[str, int] = {}
        groups: dict[str, SkillGroupCode] = {}
        for index, rule in enumerate(self._rules):
            order.setdefault(rule.issue_code, index)
            groups.setdefault(rule.issue_code, rule.skill_group_code)
        self._order = order
        self._groups = groups

    @property
    def rules(self) -> tuple[KeywordRule, ...]:
        return self._rules

    def issue_codes(self) -> list[str]:
        """Issue codes in declaration order."""
        return sorted(self._order, key=self._order.__getitem__)

    def skill_group_for(self, issue_code: str) -> SkillGroupCode | None:
        return self._groups.get(issue_code)

    def classify(self, description: str) -> ClassificationResult:
        """Classify free text into an issue code with a confidence tier.

        Each distinct keyword that occurs in the text counts once, multiplied
        by the weight of its rule. The highest scoring issue code wins; exact
        ties go to the code declared first.
        """
        text = (description or "").strip().lower()
        if not text:
            return ClassificationResult(issue_code=None, confidence=Confidence.LOW, skill_group_code=None)

        scores: dict[str, float] = {}
        matched: dict[str, list[str]] = {}
        for rule, patterns in zip(self._rules, self._patterns):
            for keyword, pattern in patterns:
                if pattern.search(text):
                    scores[rule.issue_code] = scores.get(rule.issue_code, 0.0) + rule.weight
                    matched.setdefault(rule.issue_code, []).append(keyword)

        if not scores:
            return ClassificationResult(issue_code=None, confidence=Confidence.LOW, skill_group_code=None)

        ranked = sorted(scores.items(), key=lambda item: (-item[1], self._order[item[0]]))
        top_code, top_score = ranked[0]
        contenders = [code for code, score in ranked[1:] if top_score - score <= AMBIGUITY_MARGIN]

        if contenders:
            confidence = Confidence.LOW
        elif top_score > STRONG_MATCH_THRESHOLD:
            confidence = Confidence.HIGH
        else:
            confidence = Confidence.MEDIUM

        return ClassificationResult(
            issue_code=top_code,
            confidence=confidence,
            skill_group_code=self._groups[top_code],
            score=top_score,
            matched_keywords=tuple(matched[top_code]),
        )


DEFAULT_DICTIONARY = IssueDictionary(DEFAULT_RULES)


def classify(description: str, dictionary: IssueDictionary = DEFAULT_DICTIONARY) -> ClassificationResult:
    """Pure function: classify ``description`` against ``dictionary``."""
    return dictionary.classify(description)
