#!/usr/bin/env python
"""デモ用のミスを SQLite に登録し、復習キューへ追加するユーティリティ。"""

from __future__ import annotations

import argparse
import os
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db-path",
        default=Path(os.environ.get("REVIEW_DB_PATH", ".data/review.sqlite3")),
        type=Path,
        help="登録先 SQLite DB のパス（既定: REVIEW_DB_PATH または .data/review.sqlite3）",
    )
    parser.add_argument(
        "--game-id",
        default=1,
        type=int,
        help="デモのミスを紐付ける対局 ID（既定: 1）",
    )
    parser.add_argument(
        "--no-enroll",
        action="store_true",
        help="ミスの登録のみ行い、復習キューへは追加しない場合に指定。",
    )
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # 設定クラスは import 時点で環境変数を読むため、先に上書きしてから読み込む。
    os.environ["REVIEW_DB_PATH"] = str(args.db_path)

    from chess_review.config import settings
    from chess_review.logging import configure_logging
    from chess_review.seed_demo import seed_demo
    from chess_review.srs import Clock, MistakeScheduler
    from chess_review.store import ReviewSQLiteStore

    configure_logging()
    store = ReviewSQLiteStore(str(args.db_path), timeout_sec=settings.db_timeout_sec)
    scheduler = MistakeScheduler(store, Clock(settings.review_timezone))
    recorded, enrolled = seed_demo(scheduler, enroll=not args.no_enroll, game_id=args.game_id)
    print(f"Recorded {recorded} mistakes and enrolled {enrolled} into {args.db_path}.")


if __name__ == "__main__":
    main()
