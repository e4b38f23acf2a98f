"""Runtime configuration read from the environment."""

import os

# Remote museum backend (themes, items, quizzes, prize recipients)
MUSEUM_API_BASE = os.environ.get("MUSEUM_API_BASE", "http://15.165.213.11:8080")
# Tried when the primary base fails; empty disables the second attempt
MUSEUM_API_FALLBACK = os.environ.get("MUSEUM_API_FALLBACK", "")
CONTENT_FETCH_TIMEOUT_S = float(os.environ.get("CONTENT_FETCH_TIMEOUT_S", "8"))

LLM_PROVIDER = os.environ.get("LLM_PROVIDER", "gpt-3.5-turbo")
CHAT_MAX_TOKENS = int(os.environ.get("CHAT_MAX_TOKENS", "800"))
CHAT_TEMPERATURE = float(os.environ.get("CHAT_TEMPERATURE", "0.7"))

# Durable key-value file for video overrides and the prize-claim log
DOCENT_STATE_FILE = os.environ.get("DOCENT_STATE_FILE", "docent_state.json")

SENTRY_DSN = os.environ.get("SENTRY_DSN", "")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

NARRATION_LANG = "ko-KR"
