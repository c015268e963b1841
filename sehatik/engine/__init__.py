# sehatik/engine/__init__.py
# ===========================
# Conversation Engine — Sehatik
#
# Responsibility:
#   - Pure node resolution against recorded answers (resolver.py)
#   - Cooperative, cancellable scheduling (scheduler.py)
#   - Per-step conversation driver with quick replies and clarifications
#     (session.py)
#   - Multi-step self-check flow (flow.py)

from sehatik.engine.resolver import resolve, split_head  # noqa: F401
from sehatik.engine.scheduler import AsyncioScheduler, ManualScheduler  # noqa: F401
from sehatik.engine.session import (  # noqa: F401
    BubbleKind,
    ChatBubble,
    ConversationSession,
    EngineTimings,
    SessionStatus,
)
from sehatik.engine.flow import SelfCheckFlow  # noqa: F401
