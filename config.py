import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".solace"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

SEARCH_DEFAULTS: Dict[str, Any] = {
    "max_searches_per_day": 10,
    "max_ai_searches_per_day": 10,
    "min_quotes_for_cached_result": 3,
    "result_limit": 5,
    "free_reuse_days": 30,
    "premium_reuse_days": 180,
    "synonym_penalty": 0.9,
    "high_band": 80,
    "medium_band": 60,
    "fulltext_score": 50,
    "context_scan_limit": 100,
    "context_mapping_limit": 20,
    "category_context_limit": 10,
    "category_mapping_limit": 10,
    "fulltext_scan_limit": 200,
    "ai_quote_count": 5,
}


def _env_int(name: str, fallback: Any) -> int:
    return int(os.getenv(name, fallback))


def load_config() -> Dict[str, Any]:
    """Load config from ~/.solace/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., OPENROUTER_API_KEY)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    llm_cfg = config.get("llm", {})
    config["llm"] = {
        "api_url": os.getenv(
            "LLM_API_URL",
            llm_cfg.get("api_url", "https://openrouter.ai/api/v1/chat/completions"),
        ),
        "api_key": os.getenv("OPENROUTER_API_KEY", llm_cfg.get("api_key", "")),
        "model": os.getenv("LLM_MODEL", llm_cfg.get("model", "anthropic/claude-3-haiku")),
        "timeout": float(os.getenv("LLM_TIMEOUT", llm_cfg.get("timeout", 60))),
        "referer": llm_cfg.get("referer", "https://heutedu.app"),
        "title": llm_cfg.get("title", "Solace"),
    }

    search_cfg = {**SEARCH_DEFAULTS, **config.get("search", {})}
    search_cfg["max_searches_per_day"] = _env_int(
        "MAX_SEARCHES_PER_DAY", search_cfg["max_searches_per_day"]
    )
    search_cfg["max_ai_searches_per_day"] = _env_int(
        "MAX_AI_SEARCHES_PER_DAY", search_cfg["max_ai_searches_per_day"]
    )
    config["search"] = search_cfg

    session_cfg = config.get("session", {})
    config["session"] = {
        "secret": os.getenv("SESSION_SECRET", session_cfg.get("secret", "")),
        "session_minutes": int(session_cfg.get("session_minutes", 60 * 24 * 30)),
    }
    admin_cfg = config.get("admin", {})
    config["admin"] = {"token": os.getenv("ADMIN_TOKEN", admin_cfg.get("token", ""))}
    logging_cfg = config.get("logging", {})
    config["logging"] = {"level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper()}
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('llm', 'model')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value


def get_search_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return the [search] section with defaults filled in."""
    if config is None:
        config = load_config()
    return {**SEARCH_DEFAULTS, **config.get("search", {})}
