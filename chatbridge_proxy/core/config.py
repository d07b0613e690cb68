import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

APP_VERSION = os.getenv("APP_VERSION", "1.2.0")

LOG_LEVEL_FROM_ENV = os.getenv("LOG_LEVEL", "INFO").upper()

# deepseek | gemini
CHAT_PROVIDER = os.getenv("CHAT_PROVIDER", "deepseek").strip().lower()

DEEPSEEK_API_URL = os.getenv("DEEPSEEK_API_URL", "https://api.deepseek.com/v1/chat/completions")
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
DEEPSEEK_MAX_OUTPUT_TOKENS = int(os.getenv("DEEPSEEK_MAX_OUTPUT_TOKENS", "4096"))

GEMINI_API_BASE_URL = os.getenv("GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_MAX_OUTPUT_TOKENS = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "8192"))

# 固定生成参数
DEFAULT_TEMPERATURE = float(os.getenv("DEFAULT_TEMPERATURE", "0.7"))
DEFAULT_TOP_P = float(os.getenv("DEFAULT_TOP_P", "0.95"))
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "40"))

SYSTEM_INSTRUCTION_FILE = os.getenv("SYSTEM_INSTRUCTION_FILE") or None

MESSAGE_LOCALE = os.getenv("MESSAGE_LOCALE", "ar").strip().lower()
DROP_UNKNOWN_ROLES = os.getenv("DROP_UNKNOWN_ROLES", "true").lower() == "true"

API_TIMEOUT = float(os.getenv("API_TIMEOUT", "30"))
READ_TIMEOUT = float(os.getenv("READ_TIMEOUT", "120.0"))
MAX_CONNECTIONS = int(os.getenv("MAX_CONNECTIONS", "100"))

CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "*")

SUPPORTED_PROVIDERS = ("deepseek", "gemini")


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class ProxySettings(BaseModel):
    """
    Explicit configuration injected into the app factory and the relay service.

    Module-level constants above are only the defaults; `from_env()` re-reads the
    environment so a settings object can also be built by hand in tests.
    """
    provider: str = CHAT_PROVIDER

    deepseek_api_key: Optional[str] = None
    deepseek_api_url: str = DEEPSEEK_API_URL
    deepseek_model: str = DEEPSEEK_MODEL
    deepseek_max_output_tokens: int = Field(DEEPSEEK_MAX_OUTPUT_TOKENS, gt=0)

    gemini_api_key: Optional[str] = None
    gemini_api_base_url: str = GEMINI_API_BASE_URL
    gemini_model: str = GEMINI_MODEL
    gemini_max_output_tokens: int = Field(GEMINI_MAX_OUTPUT_TOKENS, gt=0)

    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    top_p: float = Field(DEFAULT_TOP_P, ge=0.0, le=1.0)
    top_k: int = Field(DEFAULT_TOP_K, gt=0)

    system_instruction_file: Optional[str] = SYSTEM_INSTRUCTION_FILE
    message_locale: str = MESSAGE_LOCALE
    drop_unknown_roles: bool = DROP_UNKNOWN_ROLES

    api_timeout: float = API_TIMEOUT
    read_timeout: float = READ_TIMEOUT
    max_connections: int = MAX_CONNECTIONS

    log_level: str = LOG_LEVEL_FROM_ENV
    app_version: str = APP_VERSION
    cors_allow_origins: List[str] = Field(default_factory=lambda: _split_csv(CORS_ALLOW_ORIGINS))

    @classmethod
    def from_env(cls) -> "ProxySettings":
        env = os.environ
        return cls(
            provider=env.get("CHAT_PROVIDER", CHAT_PROVIDER).strip().lower(),
            deepseek_api_key=env.get("DEEPSEEK_API_KEY") or None,
            deepseek_api_url=env.get("DEEPSEEK_API_URL", DEEPSEEK_API_URL),
            deepseek_model=env.get("DEEPSEEK_MODEL", DEEPSEEK_MODEL),
            deepseek_max_output_tokens=int(env.get("DEEPSEEK_MAX_OUTPUT_TOKENS", DEEPSEEK_MAX_OUTPUT_TOKENS)),
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            gemini_api_base_url=env.get("GEMINI_API_BASE_URL", GEMINI_API_BASE_URL),
            gemini_model=env.get("GEMINI_MODEL", GEMINI_MODEL),
            gemini_max_output_tokens=int(env.get("GEMINI_MAX_OUTPUT_TOKENS", GEMINI_MAX_OUTPUT_TOKENS)),
            temperature=float(env.get("DEFAULT_TEMPERATURE", DEFAULT_TEMPERATURE)),
            top_p=float(env.get("DEFAULT_TOP_P", DEFAULT_TOP_P)),
            top_k=int(env.get("DEFAULT_TOP_K", DEFAULT_TOP_K)),
            system_instruction_file=env.get("SYSTEM_INSTRUCTION_FILE") or None,
            message_locale=env.get("MESSAGE_LOCALE", MESSAGE_LOCALE).strip().lower(),
            drop_unknown_roles=env.get("DROP_UNKNOWN_ROLES", str(DROP_UNKNOWN_ROLES)).lower() == "true",
            api_timeout=float(env.get("API_TIMEOUT", API_TIMEOUT)),
            read_timeout=float(env.get("READ_TIMEOUT", READ_TIMEOUT)),
            max_connections=int(env.get("MAX_CONNECTIONS", MAX_CONNECTIONS)),
            log_level=env.get("LOG_LEVEL", LOG_LEVEL_FROM_ENV).upper(),
            app_version=env.get("APP_VERSION", APP_VERSION),
            cors_allow_origins=_split_csv(env.get("CORS_ALLOW_ORIGINS", CORS_ALLOW_ORIGINS)),
        )

    @property
    def api_key(self) -> Optional[str]:
        if self.provider == "gemini":
            return self.gemini_api_key
        return self.deepseek_api_key

    @property
    def credential_env_name(self) -> str:
        return "GEMINI_API_KEY" if self.provider == "gemini" else "DEEPSEEK_API_KEY"

    @property
    def model(self) -> str:
        return self.gemini_model if self.provider == "gemini" else self.deepseek_model

    @property
    def max_output_tokens(self) -> int:
        if self.provider == "gemini":
            return self.gemini_max_output_tokens
        return self.deepseek_max_output_tokens
