# asenso/config.py
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# In production these rules are maintained by an administrator; override with
# POLICY_RULES (inline text) or POLICY_RULES_PATH (text file).
DEFAULT_POLICY_RULES = """
- Minimum credit score: 600
- Maximum Debt-to-Income ratio: 45%
- Applicant must have a stable income source.
- No bankruptcies in the last 7 years.
- Loan amount cannot exceed 30% of annual income.
"""

def load_policy_rules() -> str:
    inline = os.getenv("POLICY_RULES")
    if inline and inline.strip():
        return inline
    path = os.getenv("POLICY_RULES_PATH")
    if path and Path(path).exists():
        return Path(path).read_text(encoding="utf-8")
    return DEFAULT_POLICY_RULES

class Settings:
    DB_URL: str = os.getenv("DB_URL", "sqlite:///./loan_applications.db")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    LLM_TIMEOUT: int = int(os.getenv("LLM_TIMEOUT", "60"))
    API_V1_STR: str = "/v1"
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    REFERENCE_PREFIX: str = os.getenv("REFERENCE_PREFIX", "ASENSO")
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))
    BREAKDOWN_TOLERANCE: float = float(os.getenv("BREAKDOWN_TOLERANCE", "100"))
    POLICY_RULES: str = load_policy_rules()

settings = Settings()

def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
