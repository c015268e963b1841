"""
sehatik/script/conversations.py
================================
Built-in Self-Check Conversation Scripts — Sehatik

One script per self-check step, in the order the guided flow walks them:

    visual_examination → palpation → nipple_check

Each script opens with a greeting, asks its questions with quick-reply
options, branches on the answers through Conditional nodes and closes with
a wrap-up line. All text is carried as localization keys.

This module does NOT:
    - Validate scripts (that is validator.py)
    - Decide what is shown next (that is engine/)
"""

from sehatik.script.models import (
    AssistantMessage,
    Conditional,
    QuickReplyOption,
    Question,
    Script,
    yes_no_unsure,
)


# ---------------------------------------------------------------------------
# Step 1: Visual examination
# ---------------------------------------------------------------------------

VISUAL_CONVERSATION: Script = (
    AssistantMessage("visual_greeting", "selfCheck.chat.visual.greeting", delay_ms=600),
    AssistantMessage("visual_disclaimer", "selfCheck.chat.disclaimer", delay_ms=400),
    Question(
        "visual_q_skin_changes",
        "selfCheck.chat.visual.q_skinChanges",
        options=yes_no_unsure(),
        weight=2,
    ),
    Conditional(
        depends_on="visual_q_skin_changes",
        show_when=("yes",),
        children=(
            AssistantMessage("visual_skin_yes_ack", "selfCheck.chat.visual.skinYesAck"),
            Question(
                "visual_q_skin_type",
                "selfCheck.chat.visual.q_skinType",
                options=(
                    QuickReplyOption("redness", "selfCheck.chat.visual.opt_redness", True),
                    QuickReplyOption("dimpling", "selfCheck.chat.visual.opt_dimpling", True),
                    QuickReplyOption("thickening", "selfCheck.chat.visual.opt_thickening", True),
                    QuickReplyOption("peau_orange", "selfCheck.chat.visual.opt_peauOrange", True),
                    QuickReplyOption("other", "selfCheck.chat.visual.opt_other", True),
                ),
                weight=1,
            ),
        ),
    ),
    Conditional(
        depends_on="visual_q_skin_changes",
        show_when=("unsure",),
        children=(
            AssistantMessage(
                "visual_skin_unsure_help",
                "selfCheck.chat.visual.skinUnsureHelp",
                delay_ms=600,
            ),
            Question(
                "visual_q_skin_recheck",
                "selfCheck.chat.visual.q_skinRecheck",
                options=(
                    QuickReplyOption("yes", "selfCheck.chat.visual.opt_seeSomething", True),
                    QuickReplyOption("no", "selfCheck.chat.visual.opt_looksNormal", False),
                    QuickReplyOption("unsure", "selfCheck.chat.visual.opt_stillUnsure", True),
                ),
                weight=1,
            ),
        ),
    ),
    Conditional(
        depends_on="visual_q_skin_changes",
        show_when=("no",),
        children=(
            AssistantMessage("visual_skin_no_ack", "selfCheck.chat.visual.skinNoAck", delay_ms=400),
        ),
    ),
    Question(
        "visual_q_nipple_changes",
        "selfCheck.chat.visual.q_nippleChanges",
        options=yes_no_unsure(),
        weight=2,
    ),
    Conditional(
        depends_on="visual_q_nipple_changes",
        show_when=("yes",),
        children=(
            AssistantMessage("visual_nipple_yes_ack", "selfCheck.chat.visual.nippleYesAck"),
            Question(
                "visual_q_nipple_type",
                "selfCheck.chat.visual.q_nippleType",
                options=(
                    QuickReplyOption("retraction", "selfCheck.chat.visual.opt_retraction", True),
                    QuickReplyOption("discharge", "selfCheck.chat.visual.opt_discharge", True),
                    QuickReplyOption("color_change", "selfCheck.chat.visual.opt_colorChange", True),
                    QuickReplyOption("crusting", "selfCheck.chat.visual.opt_crusting", True),
                ),
                weight=1,
            ),
        ),
    ),
    Conditional(
        depends_on="visual_q_nipple_changes",
        show_when=("unsure",),
        children=(
            AssistantMessage("visual_nipple_unsure_help", "selfCheck.chat.visual.nippleUnsureHelp"),
        ),
    ),
    Conditional(
        depends_on="visual_q_nipple_changes",
        show_when=("no",),
        children=(
            AssistantMessage("visual_nipple_no_ack", "selfCheck.chat.visual.nippleNoAck", delay_ms=400),
        ),
    ),
    AssistantMessage("visual_closing", "selfCheck.chat.visual.closing"),
)


# ---------------------------------------------------------------------------
# Step 2: Palpation
# ---------------------------------------------------------------------------

PALPATION_CONVERSATION: Script = (
    AssistantMessage("palpation_greeting", "selfCheck.chat.palpation.greeting", delay_ms=600),
    Question(
        "palpation_q_lump",
        "selfCheck.chat.palpation.q_lump",
        options=yes_no_unsure(),
        weight=3,
    ),
    Conditional(
        depends_on="palpation_q_lump",
        show_when=("yes",),
        children=(
            AssistantMessage("palpation_lump_yes_ack", "selfCheck.chat.palpation.lumpYesAck"),
            # Location is informational only, hence weight 0
            Question(
                "palpation_q_lump_location",
                "selfCheck.chat.palpation.q_lumpLocation",
                options=(
                    QuickReplyOption("upper_outer", "selfCheck.chat.palpation.opt_upperOuter", True),
                    QuickReplyOption("upper_inner", "selfCheck.chat.palpation.opt_upperInner", True),
                    QuickReplyOption("lower_outer", "selfCheck.chat.palpation.opt_lowerOuter", True),
                    QuickReplyOption("lower_inner", "selfCheck.chat.palpation.opt_lowerInner", True),
                    QuickReplyOption("central", "selfCheck.chat.palpation.opt_central", True),
                    QuickReplyOption("armpit", "selfCheck.chat.palpation.opt_armpit", True),
                ),
                weight=0,
            ),
            Question(
                "palpation_q_lump_feel",
                "selfCheck.chat.palpation.q_lumpFeel",
                options=(
                    QuickReplyOption("hard", "selfCheck.chat.palpation.opt_hard", True),
                    QuickReplyOption("soft", "selfCheck.chat.palpation.opt_soft", False),
                    QuickReplyOption("mobile", "selfCheck.chat.palpation.opt_mobile", False),
                    QuickReplyOption("fixed", "selfCheck.chat.palpation.opt_fixed", True),
                ),
                weight=1,
            ),
        ),
    ),
    Conditional(
        depends_on="palpation_q_lump",
        show_when=("unsure",),
        children=(
            AssistantMessage(
                "palpation_lump_unsure_help",
                "selfCheck.chat.palpation.lumpUnsureHelp",
                delay_ms=600,
            ),
        ),
    ),
    Conditional(
        depends_on="palpation_q_lump",
        show_when=("no",),
        children=(
            AssistantMessage("palpation_lump_no_ack", "selfCheck.chat.palpation.lumpNoAck", delay_ms=400),
        ),
    ),
    Question(
        "palpation_q_pain",
        "selfCheck.chat.palpation.q_pain",
        options=yes_no_unsure(),
        weight=1,
    ),
    Conditional(
        depends_on="palpation_q_pain",
        show_when=("yes",),
        children=(
            AssistantMessage("palpation_pain_yes_ack", "selfCheck.chat.palpation.painYesAck"),
            # Cyclic pain is the reassuring answer here
            Question(
                "palpation_q_pain_cyclic",
                "selfCheck.chat.palpation.q_painCyclic",
                options=(
                    QuickReplyOption("yes", "common.yes", False),
                    QuickReplyOption("no", "common.no", True),
                    QuickReplyOption("unsure", "selfCheck.unsure", True),
                ),
                weight=1,
            ),
        ),
    ),
    Conditional(
        depends_on="palpation_q_pain",
        show_when=("no",),
        children=(
            AssistantMessage("palpation_pain_no_ack", "selfCheck.chat.palpation.painNoAck", delay_ms=400),
        ),
    ),
    Question(
        "palpation_q_changes",
        "selfCheck.chat.palpation.q_changes",
        options=yes_no_unsure(),
        weight=2,
    ),
    Conditional(
        depends_on="palpation_q_changes",
        show_when=("yes",),
        children=(
            AssistantMessage("palpation_changes_yes_ack", "selfCheck.chat.palpation.changesYesAck"),
        ),
    ),
    Conditional(
        depends_on="palpation_q_changes",
        show_when=("no",),
        children=(
            AssistantMessage(
                "palpation_changes_no_ack",
                "selfCheck.chat.palpation.changesNoAck",
                delay_ms=400,
            ),
        ),
    ),
    AssistantMessage("palpation_closing", "selfCheck.chat.palpation.closing"),
)


# ---------------------------------------------------------------------------
# Step 3: Nipple check
# ---------------------------------------------------------------------------

NIPPLE_CONVERSATION: Script = (
    AssistantMessage("nipple_greeting", "selfCheck.chat.nipple.greeting", delay_ms=600),
    Question(
        "nipple_q_discharge",
        "selfCheck.chat.nipple.q_discharge",
        options=yes_no_unsure(),
        weight=2,
    ),
    Conditional(
        depends_on="nipple_q_discharge",
        show_when=("yes",),
        children=(
            AssistantMessage("nipple_discharge_yes_ack", "selfCheck.chat.nipple.dischargeYesAck"),
            Question(
                "nipple_q_discharge_type",
                "selfCheck.chat.nipple.q_dischargeType",
                options=(
                    QuickReplyOption("clear", "selfCheck.chat.nipple.opt_clear", False),
                    QuickReplyOption("milky", "selfCheck.chat.nipple.opt_milky", False),
                    QuickReplyOption("bloody", "selfCheck.chat.nipple.opt_bloody", True),
                    QuickReplyOption("other", "selfCheck.chat.nipple.opt_otherColor", True),
                ),
                weight=2,
            ),
        ),
    ),
    Conditional(
        depends_on="nipple_q_discharge",
        show_when=("no",),
        children=(
            AssistantMessage(
                "nipple_discharge_no_ack",
                "selfCheck.chat.nipple.dischargeNoAck",
                delay_ms=400,
            ),
        ),
    ),
    Question(
        "nipple_q_appearance",
        "selfCheck.chat.nipple.q_appearance",
        options=yes_no_unsure(),
        weight=2,
    ),
    Conditional(
        depends_on="nipple_q_appearance",
        show_when=("yes",),
        children=(
            AssistantMessage("nipple_appearance_yes_ack", "selfCheck.chat.nipple.appearanceYesAck"),
        ),
    ),
    Conditional(
        depends_on="nipple_q_appearance",
        show_when=("no",),
        children=(
            AssistantMessage(
                "nipple_appearance_no_ack",
                "selfCheck.chat.nipple.appearanceNoAck",
                delay_ms=400,
            ),
        ),
    ),
    AssistantMessage("nipple_closing", "selfCheck.chat.nipple.closing"),
)


# Step id → script, in flow order
STEP_CONVERSATIONS: dict[str, Script] = {
    "visual_examination": VISUAL_CONVERSATION,
    "palpation": PALPATION_CONVERSATION,
    "nipple_check": NIPPLE_CONVERSATION,
}
