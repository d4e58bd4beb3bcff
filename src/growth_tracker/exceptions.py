"""AIサービス呼び出しのカスタム例外定義

これらの例外はTaskGeneratorの内部で捕捉され、フォールバックに変換される。
"""

from typing import Optional


class GrowthTrackerError(Exception):
    """基底例外"""

    pass


class AIServiceError(GrowthTrackerError):
    """AIサービス関連のエラー"""

    pass


class AIConfigurationError(AIServiceError):
    """APIキー未設定などの設定エラー"""

    pass


class AIRequestError(AIServiceError):
    """ネットワークエラー"""

    pass


class AITimeoutError(AIRequestError):
    """タイムアウトエラー"""

    pass


class AIResponseError(AIServiceError):
    """非2xxステータスや不正なレスポンス本文"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
