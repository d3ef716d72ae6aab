from __future__ import annotations

import pytest

from pharmacy_agent_core import SAFETY_REDIRECT_REASON, SafetyClassifier


@pytest.fixture
def classifier() -> SafetyClassifier:
    return SafetyClassifier()


@pytest.mark.parametrize(
    "message, category",
    [
        ("Should I take Ibuprofen?", "personal_suitability"),
        ("Can I take Paracetamol for my headache?", "personal_suitability"),
        ("Is it safe for me to use Aspirin every day?", "personal_suitability"),
        ("I have a headache since yesterday", "symptom_report"),
        ("I’m feeling dizzy after lunch", "symptom_report"),
        ("What should I do for a sore throat?", "treatment_request"),
        ("Can you diagnose my rash?", "diagnosis_request"),
        ("Do I have an infection?", "diagnosis_request"),
        ("What are the side effects of Metformin?", "side_effects_interactions"),
        ("Does Aspirin have any drug interaction with Ibuprofen", "side_effects_interactions"),
        ("Is this dosage correct for an adult?", "personal_dosage"),
        ("Can I combine Ibuprofen and Paracetamol?", "personal_health"),
    ],
)
def test_english_personal_questions_redirect(classifier, message, category):
    verdict = classifier.classify(message)
    assert verdict.redirect is True
    assert verdict.category == category
    assert verdict.language == "en"
    assert verdict.reason == SAFETY_REDIRECT_REASON


@pytest.mark.parametrize(
    "message, category",
    [
        ("אני צריך לקחת אקמול?", "personal_suitability"),
        ("אני יכול להשתמש באקמול?", "personal_suitability"),
        ("אני יכולה להשתמש באספירין כל יום?", "personal_suitability"),
        ("אני צריכה להפסיק את המטפורמין?", "personal_suitability"),
        ("אני לא צריך לקחת אקמול היום?", "personal_health"),
        ("יש לי כאב ראש חזק", "symptom_report"),
        ("איך לטפל בשיעול?", "treatment_request"),
        ("האם יש לי שפעת?", "diagnosis_request"),
        ("מה תופעות לוואי של אספירין?", "side_effects_interactions"),
        ("כמה כדורים לקחת ביום?", "personal_dosage"),
        ("אפשר לשלב איבופרופן ואקמול?", "personal_health"),
    ],
)
def test_hebrew_personal_questions_redirect(classifier, message, category):
    verdict = classifier.classify(message)
    assert verdict.redirect is True
    assert verdict.category == category
    assert verdict.language == "he"


@pytest.mark.parametrize(
    "message",
    [
        "Tell me about Aspirin",
        "Is Amoxicillin in stock?",
        "Do I have a prescription for Amoxicillin?",
        "Do I have a valid prescription for Metformin?",
        "Is there enough Aspirin in stock?",
        "Do you have enough Ibuprofen in stock?",
        "Which medications do you carry?",
        "What is the active ingredient of Paracetamol?",
        "האם יש לי מרשם לאמוקסיצילין?",
        "יש מספיק אספירין במלאי?",
        "אילו תרופות יש לכם?",
    ],
)
def test_factual_questions_pass_through(classifier, message):
    assert classifier.classify(message).redirect is False


@pytest.mark.parametrize("message", ["", "   ", None, "!!!", "12345", "🙂"])
def test_classify_is_total(classifier, message):
    verdict = classifier.classify(message)
    assert verdict.redirect is False
    assert verdict.reason is None


@pytest.mark.parametrize(
    "english, hebrew",
    [
        ("Can I use Aspirin every day?", "אני יכול להשתמש באספירין כל יום?"),
        ("Should I try Ibuprofen?", "אני צריך לנסות איבופרופן?"),
        ("Can I stop Metformin?", "אני יכולה להפסיק מטפורמין?"),
    ],
)
def test_suitability_redirect_matches_across_languages(classifier, english, hebrew):
    en_verdict = classifier.classify(english)
    he_verdict = classifier.classify(hebrew)
    assert (en_verdict.redirect, he_verdict.redirect) == (True, True)
    assert en_verdict.category == he_verdict.category == "personal_suitability"


def test_english_matching_ignores_case(classifier):
    assert classifier.classify("SHOULD I TAKE ASPIRIN").redirect is True
