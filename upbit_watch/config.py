"""Configuration management for the Upbit watch bot."""

import os
import re
from pathlib import Path
from typing import Dict, List, Mapping, Optional
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class ConfigError(Exception):
    """Raised when required configuration is missing."""
    pass


def split_csv(value) -> List[str]:
    """Split a comma-separated string into trimmed, non-empty items."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


class TelegramConfig(BaseModel):
    """Telegram bot configuration."""
    token: str = ""
    chat_id: str = ""
    parse_mode: str = "Markdown"
    min_interval_ms: int = 1000  # 1 second between messages


class HttpConfig(BaseModel):
    """Outbound HTTP configuration."""
    timeout_seconds: float = 10.0
    user_agent: str = "Mozilla/5.0"


class ListingConfig(BaseModel):
    """Upbit new listing detector configuration."""
    enabled: bool = True
    interval_seconds: float = 30.0
    api_url: str = "https://api.upbit.com/v1/market/all"


class WalletConfig(BaseModel):
    """Etherscan wallet tracker configuration."""
    api_key: str = ""
    addresses: List[str] = Field(default_factory=list)
    interval_seconds: float = 30.0
    api_url: str = "https://api.etherscan.io/v2/api"
    chain_id: int = 1
    page_size: int = 10

    @field_validator("addresses", mode="before")
    @classmethod
    def split_addresses(cls, value):
        return split_csv(value)

    @property
    def enabled(self) -> bool:
        """Wallet tracking needs both an API key and at least one address."""
        return bool(self.api_key and self.addresses)


class VolumeConfig(BaseModel):
    """Volume spike watcher configuration."""
    enabled: bool = True
    watch_tokens: List[str] = Field(default_factory=list)
    interval_seconds: float = 60.0
    api_url: str = "https://api.dexscreener.com/latest/dex/tokens"
    spike_ratio: float = 1.5
    min_volume: float = 1000.0

    @field_validator("watch_tokens", mode="before")
    @classmethod
    def split_tokens(cls, value):
        return split_csv(value)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = "upbit_watch.log"
    logs_dir: str = "logs"
    tail_lines: int = 200


class ServerConfig(BaseModel):
    """Keep-alive HTTP server configuration."""
    enable_keepalive: bool = True
    host: str = "0.0.0.0"
    port: int = 3000


class HistoryConfig(BaseModel):
    """Recent alerts buffer configuration."""
    capacity: int = 200
    show_limit: int = 20


class Config(BaseModel):
    """Main configuration model."""
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    listings: ListingConfig = Field(default_factory=ListingConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    volume: VolumeConfig = Field(default_factory=VolumeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)

    def missing_required(self) -> List[str]:
        """Names of required settings that are not set."""
        missing = []
        if not self.telegram.token:
            missing.append("BOT_TOKEN")
        if not self.telegram.chat_id:
            missing.append("CHAT_ID")
        return missing

    def check_required(self) -> None:
        """Raise ConfigError when the bot credential or chat id is missing."""
        missing = self.missing_required()
        if missing:
            raise ConfigError(f"{' and '.join(missing)} must be set in the environment or .env")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Config":
        """Build configuration from environment variables."""
        env = os.environ if env is None else env

        data: Dict[str, Dict] = {
            "telegram": {
                "token": env.get("BOT_TOKEN", ""),
                "chat_id": env.get("CHAT_ID", ""),
            },
            "wallet": {
                "api_key": env.get("ETHERSCAN_API", ""),
                "addresses": env.get("UPBIT_WALLETS") or env.get("UPBIT_WALLET", ""),
            },
            "volume": {
                "watch_tokens": env.get("WATCH_TOKENS", ""),
            },
            "logging": {},
            "server": {},
        }
        if env.get("LOG_LEVEL"):
            data["logging"]["level"] = env["LOG_LEVEL"].upper()
        if env.get("LOGS_DIR"):
            data["logging"]["logs_dir"] = env["LOGS_DIR"]
        if env.get("PORT"):
            data["server"]["port"] = int(env["PORT"])

        return cls(**data)

    @classmethod
    def load_from_file(cls, config_path: str = "config.yaml",
                       env: Optional[Mapping[str, str]] = None) -> "Config":
        """Load configuration from YAML file with environment variable substitution."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        env = os.environ if env is None else env
        raw = config_path.read_text()

        # ${A|B} takes the first non-empty variable; unset variables resolve to
        # empty strings so required checks still fire
        def substitute(match):
            for name in match.group(1).split("|"):
                if env.get(name):
                    return env[name]
            return ""

        raw = re.sub(r"\$\{(\w+(?:\|\w+)*)\}", substitute, raw)

        config_data = yaml.safe_load(raw) or {}
        return cls(**config_data)


def get_config(config_path: Optional[str] = None) -> Config:
    """Get configuration instance.

    Loads ``.env`` first, then the YAML file when one is given (or when
    ``config.yaml`` exists in the working directory), otherwise the plain
    environment.
    """
    load_dotenv()

    if config_path is None and Path("config.yaml").exists():
        config_path = "config.yaml"

    if config_path:
        return Config.load_from_file(config_path)
    return Config.from_env()
