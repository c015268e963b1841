# sehatik/api/__init__.py
# ========================
# HTTP Surface — Sehatik
#
# Responsibility:
#   - FastAPI application exposing self-check sessions (sessions.py)
#   - In-memory, ephemeral session store
