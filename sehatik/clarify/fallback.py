"""
sehatik/clarify/fallback.py
============================
Offline Clarification Lookup — Sehatik

Deterministic answers for free-text "how do I…" questions when the remote
text-completion collaborator is unavailable or fails.

Each step has an ordered list of entries; an entry holds keywords in
French, English and Arabic/Darija plus the localization key of its canned
answer. The lowercased user text is checked for a substring match against
each entry's keywords in order, and the first matching entry wins. No
match yields ``GENERIC_CLARIFICATION_KEY``.

This module does NOT:
    - Call any LLM or external API
    - Resolve localization keys to text
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ClarificationEntry:
    keywords: tuple[str, ...]
    response_key: str


GENERIC_CLARIFICATION_KEY: str = "selfCheck.clarify.generic"


STEP_CLARIFICATIONS: dict[str, tuple[ClarificationEntry, ...]] = {
    "visual_examination": (
        ClarificationEntry(
            ("fossette", "dimpling", "creux", "indent", "تجويف"),
            "selfCheck.clarify.visual.dimpling",
        ),
        ClarificationEntry(
            ("peau d'orange", "orange", "البرتقال", "برتقالة"),
            "selfCheck.clarify.visual.peauOrange",
        ),
        ClarificationEntry(
            ("rougeur", "rouge", "redness", "red", "حمرة", "احمرار"),
            "selfCheck.clarify.visual.redness",
        ),
        ClarificationEntry(
            ("asymétrie", "asymmetry", "taille", "size", "forme", "shape", "عدم تماثل"),
            "selfCheck.clarify.visual.asymmetry",
        ),
        ClarificationEntry(
            ("mamelon", "nipple", "rétraction", "retraction", "حلمة", "انكماش"),
            "selfCheck.clarify.visual.nipple",
        ),
        ClarificationEntry(
            ("miroir", "mirror", "comment", "how", "كيفاش", "مراية"),
            "selfCheck.clarify.visual.howToLook",
        ),
    ),
    "palpation": (
        ClarificationEntry(
            ("boule", "masse", "lump", "كتلة", "bosse"),
            "selfCheck.clarify.palpation.lump",
        ),
        ClarificationEntry(
            ("douleur", "pain", "mal", "وجع", "ألم", "tender"),
            "selfCheck.clarify.palpation.pain",
        ),
        ClarificationEntry(
            ("pression", "pressure", "appuyer", "fort", "ضغط"),
            "selfCheck.clarify.palpation.pressure",
        ),
        ClarificationEntry(
            ("aisselle", "armpit", "axilla", "bras", "إبط"),
            "selfCheck.clarify.palpation.armpit",
        ),
        ClarificationEntry(
            ("circulaire", "circular", "mouvement", "motion", "حركة", "دائرية"),
            "selfCheck.clarify.palpation.technique",
        ),
        ClarificationEntry(
            ("allongée", "lying", "coussin", "pillow", "متمددة"),
            "selfCheck.clarify.palpation.lying",
        ),
    ),
    "nipple_check": (
        ClarificationEntry(
            ("écoulement", "discharge", "liquide", "fluid", "سائل", "إفراز"),
            "selfCheck.clarify.nipple.discharge",
        ),
        ClarificationEntry(
            ("sang", "blood", "bloody", "دم"),
            "selfCheck.clarify.nipple.bloody",
        ),
        ClarificationEntry(
            ("presser", "squeeze", "عصر", "appuyer"),
            "selfCheck.clarify.nipple.howToSqueeze",
        ),
        ClarificationEntry(
            ("croûte", "crust", "peau", "skin", "قشرة"),
            "selfCheck.clarify.nipple.crusting",
        ),
    ),
}


def find_clarification(step_id: str | None, user_text: str) -> str:
    """
    Return the localization key of the best canned answer for ``user_text``.

    Args:
        step_id:   Current self-check step (unknown or None → generic answer).
        user_text: The user's free-text question.

    Returns:
        A response key; ``GENERIC_CLARIFICATION_KEY`` when nothing matches.
    """
    entries = STEP_CLARIFICATIONS.get(step_id or "", ())
    lowered = (user_text or "").lower()

    for entry in entries:
        if any(keyword.lower() in lowered for keyword in entry.keywords):
            return entry.response_key

    return GENERIC_CLARIFICATION_KEY
