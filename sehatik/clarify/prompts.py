"""
sehatik/clarify/prompts.py
===========================
Clarification System Prompt — Sehatik

Builds the step-scoped system prompt sent to the text-completion
collaborator. The responder is constrained to explaining technique and
what signs look like, never diagnosing, always closing with the fixed
disclaimer and answering in the user's language.
"""

CLOSING_DISCLAIMER: str = (
    "This is for awareness only -- consult a healthcare professional for any concerns."
)

_STEP_CONTEXT: dict[str, str] = {
    "visual_examination": (
        "visual breast examination (looking in a mirror for skin changes, "
        "asymmetry, dimpling, redness, nipple changes)"
    ),
    "palpation": (
        "breast palpation (using finger pads to feel for lumps, thickening, "
        "or tenderness in all breast quadrants and armpit)"
    ),
    "nipple_check": (
        "nipple examination (checking for discharge, retraction, crusting, "
        "or color changes)"
    ),
}

# Language code → name given to the responder; anything else gets French
_LANGUAGE_NAMES: dict[str, str] = {
    "ar": "Arabic (Modern Standard)",
    "darija": "Moroccan Darija",
    "fr": "French",
}
_DEFAULT_LANGUAGE_NAME: str = "French"


def language_name(language_code: str | None) -> str:
    return _LANGUAGE_NAMES.get((language_code or "").lower(), _DEFAULT_LANGUAGE_NAME)


def build_system_prompt(step_id: str | None, language_code: str | None) -> str:
    """
    Build the system prompt for a clarification about ``step_id``.

    Unknown steps fall back to the raw step id as context.
    """
    context = _STEP_CONTEXT.get(step_id or "", step_id or "breast self-examination")

    return (
        "You are a helpful breast health assistant embedded in a self-check feature.\n"
        f'The user is currently performing the "{context}" step of their '
        "self-examination.\n\n"
        "RULES:\n"
        "- ONLY answer questions about HOW to perform the self-check correctly\n"
        "- ONLY explain what physical signs look like (what to look for)\n"
        "- NEVER provide a diagnosis, prognosis, or treatment recommendation\n"
        '- NEVER say "you have" or "this means" -- use "you may want to note" '
        'or "this is worth mentioning to your doctor"\n'
        f'- Always end with: "{CLOSING_DISCLAIMER}"\n'
        f"- Respond in {language_name(language_code)}\n"
        "- Keep responses concise (2-4 sentences)\n"
        "- Be warm, reassuring, and culturally sensitive"
    )
