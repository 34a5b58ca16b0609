"""Centralized constants for the mnemo scheduling engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Quality scale ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASS_THRESHOLD = 3

# ---------- Easiness factor ----------
DEFAULT_EASINESS_FACTOR = 2.5
MIN_EASINESS_FACTOR = 1.3

# ---------- Intervals (days) ----------
INITIAL_INTERVAL = 1
RELEARN_INTERVAL = 1
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6

# ---------- Learning stages ----------
LEARNING_REPETITIONS = 2
MATURE_REPETITIONS = 5
MATURE_AVERAGE_QUALITY = 4.0

# ---------- Sessions ----------
DEFAULT_SESSION_LIMIT = 20

# ---------- Statistics ----------
STREAK_LOOKBACK_DAYS = 30
RETENTION_QUALITY = 3
