from __future__ import annotations

import re
from typing import Protocol

from .models import SafetyVerdict


SAFETY_REDIRECT_REASON = (
    "This question requires medical advice. Please consult with a healthcare professional."
)


class SafetyClassifierProtocol(Protocol):
    def classify(self, text: str) -> SafetyVerdict: ...


def _compile(flags: int, *patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, flags) for pattern in patterns)


_EN = re.IGNORECASE

# (category, patterns) in evaluation order.
_ENGLISH_FAMILY: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = (
    (
        "personal_suitability",
        _compile(
            _EN,
            r"\b(should|can|could|may) i (take|use|try|start|stop|avoid)\b",
            r"\bis (it|this) (safe|okay|ok|good|appropriate|suitable|right|correct) for me\b",
            r"\bwould it be (safe|okay|ok|good)\b",
            r"\b(should|can) i (buy|purchase|get)\b",
            r"\bwill it (work for|help) me\b",
        ),
    ),
    (
        "symptom_report",
        _compile(
            _EN,
            r"\bi have (a |an )?(pain|fever|headache|migraine|cough|rash|symptoms?|condition|disease|illness)\b",
            r"\bi(?:['’]m| am) (feeling|experiencing|sick|ill|unwell|nauseous|dizzy|tired)\b",
            r"\bi feel\b",
            r"\bi have been (feeling|experiencing|having)\b",
            r"\bmy (symptoms?|condition|pain|fever|headache)\b",
        ),
    ),
    (
        "treatment_request",
        _compile(
            _EN,
            r"\bwhat (should|can) i do (for|about)\b",
            r"\bhow (should|do|can) i treat\b",
            r"\bhow to (treat|cure|heal)\b",
            r"\bwhat (would|do) you recommend for\b",
            r"\b(what|which) (medicine|medication) should i\b",
            r"\bbest (treatment|medicine|medication) for\b",
            r"\bshould i (see a doctor|go to|visit)\b",
        ),
    ),
    (
        "diagnosis_request",
        _compile(
            _EN,
            r"\bdiagnos",
            r"\bwhat do i have\b",
            r"\bwhat['’]?s wrong with me\b",
            r"\bwhat (condition|disease|illness)\b",
            r"\b(do|could) (you think )?i have (a |an )?(disease|condition|illness|infection|virus|flu|cold|covid|cancer|diabetes)\b",
            r"\bcould this be\b",
        ),
    ),
    (
        "side_effects_interactions",
        _compile(
            _EN,
            r"\bside[- ]effects?\b",
            r"\badverse reaction\b",
            r"\bnegative effect\b",
            r"\b(drug|medication) interaction\b",
            r"\binteraction with\b",
            r"\b(will|does) it interact\b",
            r"\bis it (dangerous|harmful)\b",
            r"\b(will|can) it cause\b",
            r"\bwhat happens if i\b",
        ),
    ),
    (
        "personal_dosage",
        _compile(
            _EN,
            r"\b(dosage|dose) for me\b",
            r"\bhow (much|many|often|frequently) should i\b",
            r"\bhow many can i take\b",
            r"\bwhen (should|can) i take\b",
            r"\b(can|should) i take more\b",
            r"\bcan i increase\b",
            r"\bis this (dosage|dose) correct\b",
            r"\btoo (much|little)\b",
        ),
    ),
    (
        "personal_health",
        _compile(
            _EN,
            r"\bshould i (continue|stop|not take)\b",
            r"\bcan i (combine|mix|take (them |these |it )?together)\b",
            r"\bis it (compatible with|safe to combine)\b",
        ),
    ),
)

_HEBREW_FAMILY: tuple[tuple[str, tuple[re.Pattern[str], ...]], ...] = (
    (
        "personal_suitability",
        _compile(
            0,
            r"אני (צריך|צריכה|יכול|יכולה) (לקחת|להשתמש|לנסות|להתחיל|להפסיק|להימנע|לקנות)",
            r"(אפשר|מותר|בטוח|בסדר|טוב) לי",
            r"(כדאי|מומלץ) לי",
            r"(בטוח|בסדר|טוב) בשבילי|מתאים לי",
        ),
    ),
    (
        "symptom_report",
        _compile(
            0,
            r"יש לי (כאב|חום|כאב ראש|תסמינים?|מצב|מחלה)",
            r"אני (מרגיש|מרגישה|חווה)",
            r"(התסמינים|המצב|הכאב) שלי",
            r"אני חולה|אני לא מרגיש טוב|אני לא מרגישה טוב",
        ),
    ),
    (
        "treatment_request",
        _compile(
            0,
            r"מה אני (צריך|צריכה) לעשות|מה לעשות",
            r"איך (לטפל|מטפלים|לרפא)",
            r"(איזו|איזה) תרופה|מה התרופה",
            r"מה צריך (לקחת|להשתמש)",
            r"(הטיפול|התרופה) הטוב(ה)? ביותר",
            r"למי (לפנות|ללכת)|מתי לראות רופא",
        ),
    ),
    (
        "diagnosis_request",
        _compile(
            0,
            r"מה יש לי|מה (המצב|המחלה|הבעיה) שלי",
            r"(איזה מצב|איזו מחלה|איזו בעיה)",
            r"(האם |אולי |יכול להיות ש)יש לי (מחלה|זיהום|דלקת|סוכרת|שפעת)",
            r"מה לא בסדר",
        ),
    ),
    (
        "side_effects_interactions",
        _compile(
            0,
            r"תופעות לוואי",
            r"(מה|איזה) ה?תופעות",
            r"תגובה שלילית",
            r"אינטראקציה",
            r"האם זה (מסוכן|מזיק|בטוח)",
            r"מה (יקרה|יהיה) אם",
        ),
    ),
    (
        "personal_dosage",
        _compile(
            0,
            r"מה (המינון|הכמות) בשבילי",
            r"כמה (לקחת|כדורים|טבליות|פעמים)",
            r"מתי (לקחת|להשתמש)",
            r"האם (המינון|הכמות) (נכון|נכונה)",
            r"(יותר|פחות) מדי",
            r"(אפשר|צריך) לקחת יותר",
        ),
    ),
    (
        "personal_health",
        _compile(
            0,
            r"זה (נכון בשבילי|יעזור לי)",
            r"אני (צריך|צריכה) (להמשיך|להפסיק)",
            r"אפשר (לשלב|לערבב|לקחת יחד)",
            r"צריך להימנע|אסור לי",
            r"(לא צריך|לא צריכה) לקחת",
            r"זה (תואם|בטוח לשלב|בטוח יחד)",
        ),
    ),
)


class SafetyClassifier:
    """Regex pre-flight check that routes personal medical questions to a referral."""

    _FAMILIES = (
        ("en", _ENGLISH_FAMILY),
        ("he", _HEBREW_FAMILY),
    )

    def classify(self, text: str) -> SafetyVerdict:
        cleaned = (text or "").strip()
        if not cleaned:
            return SafetyVerdict(redirect=False)
        for language, family in self._FAMILIES:
            for category, patterns in family:
                for pattern in patterns:
                    if pattern.search(cleaned):
                        return SafetyVerdict(
                            redirect=True,
                            reason=SAFETY_REDIRECT_REASON,
                            category=category,
                            language=language,
                        )
        return SafetyVerdict(redirect=False)
