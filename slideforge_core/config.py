"""
SlideForge Unified Configuration System
=======================================

Loads and manages configuration from slideforge.yaml with environment variable overrides.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import os
import yaml
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "slideforge.yaml"

# Value shipped in the sample .env; treated as "no key configured"
PLACEHOLDER_API_KEY = "your-openai-api-key-here"

DEFAULT_MODELS: Dict[str, List[str]] = {
    "openai": ["gpt-4", "gpt-4o-mini", "gpt-3.5-turbo"],
    "claude": ["claude-sonnet-4-20250514", "claude-3-5-haiku-latest"],
    "ollama": ["qwen2.5:7b"],
}


# =============================================================================
# Configuration Data Classes
# =============================================================================

@dataclass
class LLMConfig:
    """Text-generation collaborator configuration."""
    backend: str = "openai"
    models: List[str] = field(default_factory=lambda: list(DEFAULT_MODELS["openai"]))
    api_key: Optional[str] = None
    base_url: str = "http://localhost:11434"  # Ollama only
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout: int = 60

    @property
    def has_credentials(self) -> bool:
        """Local backends need no key; cloud backends need a real one."""
        if self.backend == "ollama":
            return True
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY


@dataclass
class DesignServiceConfig:
    """Design-template service (Canva-style) configuration."""
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    base_url: str = "https://api.canva.com"
    token_url: str = "https://api.canva.com/oauth/token"
    timeout: int = 60


@dataclass
class EditorServiceConfig:
    """Placeholder-substitution service (Cloudmersive-style) configuration."""
    api_key: Optional[str] = None
    base_url: str = "https://api.cloudmersive.com"
    timeout: int = 60


@dataclass
class ServerConfig:
    """Web server and output directory configuration."""
    host: str = "127.0.0.1"
    port: int = 5000
    output_dir: str = "generated"
    stale_file_seconds: int = 300


@dataclass
class RateLimitConfig:
    """Per-client request rate limit (applied to /api/*)."""
    enabled: bool = True
    max_requests: int = 100
    window_seconds: int = 900


@dataclass
class DeckConfig:
    """Deck generation defaults and bounds."""
    min_slides: int = 5
    max_slides: int = 25
    default_slides: int = 10
    default_theme: str = "ai-modern"
    author: str = "BBSF Dev Team"
    company: str = "Professional AI Tools"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    event_log: bool = False
    log_dir: str = ".slideforge_logs"


@dataclass
class SlideForgeConfig:
    """Root configuration container."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    design_service: DesignServiceConfig = field(default_factory=DesignServiceConfig)
    editor_service: EditorServiceConfig = field(default_factory=EditorServiceConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    deck: DeckConfig = field(default_factory=DeckConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    version: str = "0.3.0"


# =============================================================================
# Configuration Loader
# =============================================================================

def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find slideforge.yaml by searching upward from start_path.

    Search order:
    1. start_path / slideforge.yaml
    2. start_path / .slideforge / slideforge.yaml
    3. Parent directories (recursive)
    4. ~/.config/slideforge/slideforge.yaml
    5. /etc/slideforge/slideforge.yaml

    Args:
        start_path: Starting directory (defaults to cwd)

    Returns:
        Path to config file or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()
    while True:
        for candidate in (current / CONFIG_FILENAME, current / ".slideforge" / CONFIG_FILENAME):
            if candidate.exists():
                return candidate
        if current.parent == current:
            break
        current = current.parent

    user_config = Path.home() / ".config" / "slideforge" / CONFIG_FILENAME
    if user_config.exists():
        return user_config

    system_config = Path("/etc/slideforge") / CONFIG_FILENAME
    if system_config.exists():
        return system_config

    return None


def load_config(config_path: Optional[Path] = None) -> SlideForgeConfig:
    """
    Load configuration from YAML file with environment variable overrides.

    Environment variables override config file values:
    - OPENAI_API_KEY / ANTHROPIC_API_KEY -> llm.api_key (per backend)
    - SLIDEFORGE_LLM_BACKEND -> llm.backend
    - SLIDEFORGE_LLM_MODELS -> llm.models (comma-separated preference list)
    - CANVA_CLIENT_ID / CANVA_CLIENT_SECRET -> design_service
    - CLOUDMERSIVE_API_KEY -> editor_service.api_key
    - SLIDEFORGE_OUTPUT_DIR -> server.output_dir
    - PORT -> server.port
    - SLIDEFORGE_LOG_LEVEL -> logging.level

    Args:
        config_path: Path to config file (auto-detected if None)

    Returns:
        SlideForgeConfig instance
    """
    config = SlideForgeConfig()

    if config_path is None:
        config_path = find_config_file()

    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
            config = _parse_config_dict(data)
        except (OSError, yaml.YAMLError, AttributeError, TypeError) as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
    else:
        logger.info("No config file found, using defaults")

    config = _apply_env_overrides(config)
    _validate_config(config)

    return config


def _secret(value: Optional[str]) -> Optional[str]:
    """Drop the marker written by save_config in place of a real secret."""
    if not value or str(value).startswith("***"):
        return None
    return str(value)


def _parse_config_dict(data: Dict[str, Any]) -> SlideForgeConfig:
    """Parse configuration dictionary into SlideForgeConfig."""
    config = SlideForgeConfig()

    if "llm" in data:
        llm = data["llm"]
        backend = str(llm.get("backend", config.llm.backend)).lower()
        models = llm.get("models") or llm.get("model")
        if isinstance(models, str):
            models = [models]
        config.llm = LLMConfig(
            backend=backend,
            models=list(models) if models else list(DEFAULT_MODELS.get(backend, [])),
            api_key=_secret(llm.get("api_key")),
            base_url=llm.get("base_url", config.llm.base_url),
            temperature=llm.get("temperature", config.llm.temperature),
            max_tokens=llm.get("max_tokens", config.llm.max_tokens),
            timeout=llm.get("timeout", config.llm.timeout),
        )

    if "design_service" in data:
        ds = data["design_service"]
        config.design_service = DesignServiceConfig(
            client_id=_secret(ds.get("client_id")),
            client_secret=_secret(ds.get("client_secret")),
            base_url=ds.get("base_url", config.design_service.base_url),
            token_url=ds.get("token_url", config.design_service.token_url),
            timeout=ds.get("timeout", config.design_service.timeout),
        )

    if "editor_service" in data:
        es = data["editor_service"]
        config.editor_service = EditorServiceConfig(
            api_key=_secret(es.get("api_key")),
            base_url=es.get("base_url", config.editor_service.base_url),
            timeout=es.get("timeout", config.editor_service.timeout),
        )

    if "server" in data:
        srv = data["server"]
        config.server = ServerConfig(
            host=srv.get("host", config.server.host),
            port=srv.get("port", config.server.port),
            output_dir=srv.get("output_dir", config.server.output_dir),
            stale_file_seconds=srv.get("stale_file_seconds", config.server.stale_file_seconds),
        )

    if "rate_limit" in data:
        rl = data["rate_limit"]
        config.rate_limit = RateLimitConfig(
            enabled=rl.get("enabled", config.rate_limit.enabled),
            max_requests=rl.get("max_requests", config.rate_limit.max_requests),
            window_seconds=rl.get("window_seconds", config.rate_limit.window_seconds),
        )

    if "deck" in data:
        deck = data["deck"]
        config.deck = DeckConfig(
            min_slides=deck.get("min_slides", config.deck.min_slides),
            max_slides=deck.get("max_slides", config.deck.max_slides),
            default_slides=deck.get("default_slides", config.deck.default_slides),
            default_theme=deck.get("default_theme", config.deck.default_theme),
            author=deck.get("author", config.deck.author),
            company=deck.get("company", config.deck.company),
        )

    if "logging" in data:
        log = data["logging"]
        config.logging = LoggingConfig(
            level=log.get("level", config.logging.level),
            event_log=log.get("event_log", config.logging.event_log),
            log_dir=log.get("log_dir", config.logging.log_dir),
        )

    config.version = data.get("version", config.version)

    return config


def _apply_env_overrides(config: SlideForgeConfig) -> SlideForgeConfig:
    """Apply environment variable overrides to config."""

    if os.environ.get("SLIDEFORGE_LLM_BACKEND"):
        backend = os.environ["SLIDEFORGE_LLM_BACKEND"].lower()
        if backend != config.llm.backend:
            config.llm.backend = backend
            config.llm.models = list(DEFAULT_MODELS.get(backend, config.llm.models))

    if os.environ.get("SLIDEFORGE_LLM_MODELS"):
        models = [m.strip() for m in os.environ["SLIDEFORGE_LLM_MODELS"].split(",") if m.strip()]
        if models:
            config.llm.models = models

    # Provider keys apply only to the matching backend
    if config.llm.backend == "openai" and os.environ.get("OPENAI_API_KEY"):
        config.llm.api_key = os.environ["OPENAI_API_KEY"]
    elif config.llm.backend == "claude" and os.environ.get("ANTHROPIC_API_KEY"):
        config.llm.api_key = os.environ["ANTHROPIC_API_KEY"]

    if os.environ.get("CANVA_CLIENT_ID"):
        config.design_service.client_id = os.environ["CANVA_CLIENT_ID"]

    if os.environ.get("CANVA_CLIENT_SECRET"):
        config.design_service.client_secret = os.environ["CANVA_CLIENT_SECRET"]

    if os.environ.get("CLOUDMERSIVE_API_KEY"):
        config.editor_service.api_key = os.environ["CLOUDMERSIVE_API_KEY"]

    if os.environ.get("SLIDEFORGE_OUTPUT_DIR"):
        config.server.output_dir = os.environ["SLIDEFORGE_OUTPUT_DIR"]

    if os.environ.get("PORT"):
        try:
            config.server.port = int(os.environ["PORT"])
        except ValueError:
            logger.warning(f"Ignoring non-numeric PORT '{os.environ['PORT']}'")

    if os.environ.get("SLIDEFORGE_LOG_LEVEL"):
        config.logging.level = os.environ["SLIDEFORGE_LOG_LEVEL"].upper()

    return config


def _validate_config(config: SlideForgeConfig) -> None:
    """Validate configuration and log warnings."""

    valid_backends = ("openai", "claude", "ollama")
    if config.llm.backend not in valid_backends:
        logger.warning(f"Unknown LLM backend '{config.llm.backend}', defaulting to 'openai'")
        config.llm.backend = "openai"
        config.llm.models = list(DEFAULT_MODELS["openai"])

    if not config.llm.models:
        logger.warning(f"Empty model list, using defaults for '{config.llm.backend}'")
        config.llm.models = list(DEFAULT_MODELS[config.llm.backend])

    deck = config.deck
    if deck.min_slides < 4 or deck.min_slides > deck.max_slides:
        logger.warning(
            f"Invalid slide bounds [{deck.min_slides}, {deck.max_slides}], defaulting to [5, 25]"
        )
        deck.min_slides, deck.max_slides = 5, 25

    if not deck.min_slides <= deck.default_slides <= deck.max_slides:
        logger.warning(f"Default slide count {deck.default_slides} out of bounds, using {deck.min_slides}")
        deck.default_slides = max(deck.min_slides, min(deck.default_slides, deck.max_slides))

    if config.rate_limit.max_requests <= 0 or config.rate_limit.window_seconds <= 0:
        logger.warning("Invalid rate limit settings, defaulting to 100 requests / 900 s")
        config.rate_limit.max_requests = 100
        config.rate_limit.window_seconds = 900

    valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    if str(config.logging.level).upper() not in valid_levels:
        logger.warning(f"Unknown log level '{config.logging.level}', defaulting to 'INFO'")
        config.logging.level = "INFO"


def save_config(config: SlideForgeConfig, path: Path) -> None:
    """
    Save configuration to YAML file.

    Secrets are never written; a marker tells the reader where they come from.

    Args:
        config: SlideForgeConfig instance
        path: Output path
    """
    secret_marker = "*** SET VIA ENVIRONMENT VARIABLE ***"
    data = {
        "version": config.version,
        "llm": {
            "backend": config.llm.backend,
            "models": list(config.llm.models),
            "base_url": config.llm.base_url,
            "temperature": config.llm.temperature,
            "max_tokens": config.llm.max_tokens,
            "timeout": config.llm.timeout,
        },
        "design_service": {
            "base_url": config.design_service.base_url,
            "token_url": config.design_service.token_url,
            "timeout": config.design_service.timeout,
        },
        "editor_service": {
            "base_url": config.editor_service.base_url,
            "timeout": config.editor_service.timeout,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "output_dir": config.server.output_dir,
            "stale_file_seconds": config.server.stale_file_seconds,
        },
        "rate_limit": {
            "enabled": config.rate_limit.enabled,
            "max_requests": config.rate_limit.max_requests,
            "window_seconds": config.rate_limit.window_seconds,
        },
        "deck": {
            "min_slides": config.deck.min_slides,
            "max_slides": config.deck.max_slides,
            "default_slides": config.deck.default_slides,
            "default_theme": config.deck.default_theme,
            "author": config.deck.author,
            "company": config.deck.company,
        },
        "logging": {
            "level": config.logging.level,
            "event_log": config.logging.event_log,
            "log_dir": config.logging.log_dir,
        },
    }

    if config.llm.api_key:
        data["llm"]["api_key"] = secret_marker
    if config.design_service.client_id:
        data["design_service"]["client_id"] = config.design_service.client_id
    if config.design_service.client_secret:
        data["design_service"]["client_secret"] = secret_marker
    if config.editor_service.api_key:
        data["editor_service"]["api_key"] = secret_marker

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Configuration saved to: {path}")


# =============================================================================
# Global Config Instance
# =============================================================================

_global_config: Optional[SlideForgeConfig] = None


def get_config() -> SlideForgeConfig:
    """Get the global configuration instance (lazy-loaded)."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reload_config(config_path: Optional[Path] = None) -> SlideForgeConfig:
    """Reload configuration from file."""
    global _global_config
    _global_config = load_config(config_path)
    return _global_config
