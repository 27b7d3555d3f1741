import os

# ═══════════════════════════════════════════════════════════════
# CORS - Admin API
# ═══════════════════════════════════════════════════════════════
ALLOW_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOW_ORIGINS", "*").split(",")
    if o.strip()
]

# ═══════════════════════════════════════════════════════════════
# BACKEND (OpenAI-kompatibler Chat-Completions Endpoint)
# ═══════════════════════════════════════════════════════════════
OLLAMA_BASE = os.getenv("OLLAMA_BASE", "http://ollama:11434")
STAGE_API_URL = os.getenv("STAGE_API_URL", f"{OLLAMA_BASE}/v1/chat/completions")
STAGE_API_KEY = os.getenv("STAGE_API_KEY", "")

# Analyse-Stages brauchen kein großes Model, nur sauberes Befolgen der Anweisung
STAGE_MODEL = os.getenv("STAGE_MODEL", "ministral-3:8b")
STAGE_TEMPERATURE = float(os.getenv("STAGE_TEMPERATURE", "0.7"))

# ═══════════════════════════════════════════════════════════════
# STAGED THINKING
# ═══════════════════════════════════════════════════════════════
STAGED_THINKING_ENABLED = os.getenv("STAGED_THINKING_ENABLED", "true").lower() == "true"

# Stage-Outputs komplett ins Log schreiben
SHOW_STAGES = os.getenv("SHOW_STAGES", "true").lower() == "true"

# Eigenes Token-Budget pro Stage (unabhängig vom Budget der Haupt-Generation)
MAX_TOKENS_PER_STAGE = int(os.getenv("MAX_TOKENS_PER_STAGE", "500"))

# Pause zwischen zwei Stages, 0 = keine Pause
DELAY_BETWEEN_STAGES_MS = int(os.getenv("DELAY_BETWEEN_STAGES_MS", "100"))

# Harte Obergrenze pro Backend-Call. Danach gilt die Stage als fehlgeschlagen.
STAGE_TIMEOUT_S = float(os.getenv("STAGE_TIMEOUT_S", "60"))

MAX_CONTEXT_MESSAGES = int(os.getenv("MAX_CONTEXT_MESSAGES", "10"))

# Zeichen-Budget für den User-Prompt einer Stage, 0 = nicht kürzen
MAX_STAGE_PROMPT_CHARS = int(os.getenv("MAX_STAGE_PROMPT_CHARS", "12000"))

STAGES_FILE = os.getenv(
    "STAGES_FILE",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "config", "stages.yaml"),
)

# ═══════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# "text" = [ts] [LEVEL] msg, "json" = eine JSON-Zeile pro Eintrag (für Log-Collector)
LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()
