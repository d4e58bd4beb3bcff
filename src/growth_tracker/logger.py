"""
ロギング設定モジュール

ルートロガーにファイル出力とコンソール出力を設定する。
各モジュールは logging.getLogger(__name__) で取得したロガーを使う。
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# AI呼び出しごとに接続ログを出すため、通常運用ではWARNING以上に絞る
NOISY_LOGGERS = ("urllib3", "requests")


def setup_logger(log_level: str = "INFO", log_file: str = "logs/growth_tracker.log") -> None:
    """
    ロガーのセットアップ

    Args:
        log_level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)。不明な値はINFO扱い
        log_file: ログファイルのパス
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path, encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
