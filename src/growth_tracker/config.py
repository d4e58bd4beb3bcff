"""
設定管理モジュール

関連クラス:
  - ai_client.OpenRouterClient: AIプロバイダ設定を使用
  - dashboard.DashboardService: タスク生成設定を使用
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class AIConfig:
    """チャット補完APIの設定

    APIキー自体は保持せず、読み込む環境変数名だけを持つ。
    """

    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "gryphe/mythomist-7b:free"
    api_key_env: str = "OPENROUTER_API_KEY"
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout_seconds: float = 30.0
    app_url: str = "https://daily-growth-tracker.vercel.app"
    app_title: str = "Daily Growth Tracker"


@dataclass
class GenerationConfig:
    """タスク生成設定"""

    journal_lookback_days: int = 30  # 中重みのジャーナル(8-30日前)まで読み込む
    recent_days: int = 7  # これ以内のジャーナルは高重み
    medium_days: int = 30  # これを超えるジャーナルはプロンプトに含めない
    recent_excerpt_chars: int = 500
    medium_excerpt_chars: int = 100


@dataclass
class Config:
    """アプリケーション設定クラス"""

    ai: AIConfig = None  # type: ignore
    generation: GenerationConfig = None  # type: ignore

    # 未指定時はGROWTH_TRACKER_DB_PATHまたはdata/growth_tracker.db
    database_path: Optional[str] = None

    # ログ設定
    log_level: str = "INFO"
    log_file: str = "logs/growth_tracker.log"

    def __post_init__(self):
        """デフォルト値の初期化"""
        if self.ai is None:
            self.ai = AIConfig()
        if self.generation is None:
            self.generation = GenerationConfig()

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Config":
        """YAMLファイルから設定を読み込む

        Args:
            config_path: 設定ファイルパス（省略時はconfig/app_config.yamlを使用）

        Returns:
            Config: 設定インスタンス（ファイルが無い場合は環境変数から構築）
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "app_config.yaml"

        if not config_path.exists():
            return cls.from_env()

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data: Dict[str, Any] = yaml.safe_load(f) or {}

        ai_data = yaml_data.get("ai", {}) or {}
        generation_data = yaml_data.get("generation", {}) or {}
        database_data = yaml_data.get("database", {}) or {}
        log_data = yaml_data.get("log", {}) or {}

        defaults = AIConfig()
        generation_defaults = GenerationConfig()

        return cls(
            ai=AIConfig(
                base_url=ai_data.get("base_url", defaults.base_url),
                model=ai_data.get("model", defaults.model),
                api_key_env=ai_data.get("api_key_env", defaults.api_key_env),
                temperature=float(ai_data.get("temperature", defaults.temperature)),
                max_tokens=int(ai_data.get("max_tokens", defaults.max_tokens)),
                timeout_seconds=float(ai_data.get("timeout_seconds", defaults.timeout_seconds)),
                app_url=ai_data.get("app_url", defaults.app_url),
                app_title=ai_data.get("app_title", defaults.app_title),
            ),
            generation=GenerationConfig(
                journal_lookback_days=int(
                    generation_data.get(
                        "journal_lookback_days", generation_defaults.journal_lookback_days
                    )
                ),
                recent_days=int(generation_data.get("recent_days", generation_defaults.recent_days)),
                medium_days=int(generation_data.get("medium_days", generation_defaults.medium_days)),
                recent_excerpt_chars=int(
                    generation_data.get(
                        "recent_excerpt_chars", generation_defaults.recent_excerpt_chars
                    )
                ),
                medium_excerpt_chars=int(
                    generation_data.get(
                        "medium_excerpt_chars", generation_defaults.medium_excerpt_chars
                    )
                ),
            ),
            database_path=database_data.get("path"),
            log_level=log_data.get("level", "INFO"),
            log_file=log_data.get("file", "logs/growth_tracker.log"),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """環境変数から設定を読み込む"""
        return cls(
            ai=AIConfig(
                base_url=os.getenv("AI_BASE_URL", "https://openrouter.ai/api/v1"),
                model=os.getenv("AI_MODEL", "gryphe/mythomist-7b:free"),
                api_key_env=os.getenv("AI_API_KEY_ENV", "OPENROUTER_API_KEY"),
                temperature=float(os.getenv("TEMPERATURE", "0.7")),
                max_tokens=int(os.getenv("MAX_TOKENS", "1000")),
                timeout_seconds=float(os.getenv("AI_TIMEOUT_SECONDS", "30")),
                app_url=os.getenv("APP_URL", "https://daily-growth-tracker.vercel.app"),
                app_title=os.getenv("APP_TITLE", "Daily Growth Tracker"),
            ),
            generation=GenerationConfig(
                journal_lookback_days=int(os.getenv("JOURNAL_LOOKBACK_DAYS", "30")),
            ),
            database_path=os.getenv("GROWTH_TRACKER_DB_PATH"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/growth_tracker.log"),
        )
