"""
チャット補完APIクライアントモジュール（OpenRouter互換）

関連クラス:
  - config.AIConfig: 接続設定を提供
  - task_generator.TaskGenerator: このクライアントを使用

注意: このクライアントは補完テキストをそのまま返す。JSONとしての解釈は呼び出し側で行う。
"""

import logging
import os
from typing import Any, Dict, List, Optional

import requests

from .config import AIConfig
from .exceptions import (
    AIConfigurationError,
    AIRequestError,
    AIResponseError,
    AITimeoutError,
)


class OpenRouterClient:
    """Bearer認証のチャット補完APIクライアント"""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "gryphe/mythomist-7b:free",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        app_url: Optional[str] = None,
        app_title: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        初期化

        Args:
            api_key: APIキー（Noneや空文字の場合はAI機能が無効になる）
            base_url: APIのベースURL
            model: 使用するモデル名
            temperature: 生成温度
            max_tokens: 最大トークン数
            timeout: HTTPタイムアウト秒数
            app_url: HTTP-Refererヘッダーに載せるアプリURL
            app_title: X-Titleヘッダーに載せるアプリ名
            session: requestsセッション（テスト用にDI可能）
        """
        self.api_key = api_key or None
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.app_url = app_url
        self.app_title = app_title
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

        if not self.api_key:
            self.logger.warning("AI API key not found. AI features will be disabled.")

    @classmethod
    def from_config(cls, config: AIConfig) -> "OpenRouterClient":
        """設定と環境変数からクライアントを構築する"""
        return cls(
            api_key=os.getenv(config.api_key_env),
            base_url=config.base_url,
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout_seconds,
            app_url=config.app_url,
            app_title=config.app_title,
        )

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if self.app_url:
            headers["HTTP-Referer"] = self.app_url
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers

    def chat(self, messages: List[Dict[str, str]]) -> str:
        """
        チャット補完を実行して最初の選択肢のテキストを返す

        Args:
            messages: メッセージのリスト [{"role": "system", "content": "..."}, ...]

        Returns:
            補完テキスト

        Raises:
            AIConfigurationError: APIキーが未設定の場合
            AITimeoutError: タイムアウトした場合
            AIRequestError: 通信に失敗した場合
            AIResponseError: 非2xxステータスまたはレスポンス形式が不正な場合
        """
        if not self.is_configured:
            raise AIConfigurationError("AI service not configured: API key is missing")

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            self.logger.error(f"AI request timed out after {self.timeout}s: {e}")
            raise AITimeoutError(f"AI request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"AI request failed: {e}")
            raise AIRequestError(f"AI request failed: {e}") from e

        if not response.ok:
            body = response.text[:500]
            self.logger.error(f"AI API error: {response.status_code} {body}")
            raise AIResponseError(
                f"AI service error: {response.status_code}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AIResponseError(f"AI response body is not JSON: {e}") from e

        content = None
        if isinstance(data, dict):
            choices = data.get("choices") or []
            if isinstance(choices, list) and choices and isinstance(choices[0], dict):
                message = choices[0].get("message")
                if isinstance(message, dict):
                    content = message.get("content")

        if not isinstance(content, str) or not content.strip():
            raise AIResponseError("No content received from AI service")

        self.logger.debug(f"AI response: {content[:200]}")
        return content
