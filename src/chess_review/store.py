from __future__ import annotations

import dataclasses
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional

from .errors import ConflictError, InvalidInputError, NotFoundError, StoreUnavailableError
from .logging import logger
from .models.common import MistakeType
from .records import DueReview, Mistake, StudySession


_MISTAKE_COLUMNS = (
    "id, game_id, move_number, position_fen, played_move, best_move, "
    "evaluation_before, evaluation_after, mistake_type, analysis"
)
_SESSION_COLUMNS = "id, mistake_id, next_review, interval_days, times_reviewed, last_reviewed, last_move"
_UPDATABLE_SESSION_FIELDS = frozenset(
    {"next_review_date", "interval_days", "times_reviewed", "last_reviewed_at", "last_move"}
)


class ReviewSQLiteStore:
    """SQLite-backed store for mistakes and their study sessions.

    - mistakes: append-only, written once by game analysis
    - study_sessions: one row per mistake (UNIQUE mistake_id), updated in place
    - dates are stored as ISO 8601 strings (date-only for next_review)
    - callers needing read-check-write atomicity use ``transaction()``
      (BEGIN IMMEDIATE) and pass the connection to the individual methods
    """

    def __init__(self, db_path: str, timeout_sec: float = 10.0) -> None:
        self.db_path = db_path
        self.timeout_sec = timeout_sec
        self._ensure_dirs()
        self._init_db()

    # --- low-level helpers ---
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path, timeout=self.timeout_sec, isolation_level=None, check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        with conn:  # autocommit on PRAGMA
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    def _ensure_dirs(self) -> None:
        p = Path(self.db_path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        """Translate sqlite3 failures into StoreUnavailableError."""
        try:
            yield
        except sqlite3.Error as exc:
            logger.error("store_error", op=op, db_path=self.db_path, error=repr(exc))
            raise StoreUnavailableError(f"{op} failed: {exc}") from exc

    @contextmanager
    def _connection(self, conn: Optional[sqlite3.Connection]) -> Iterator[sqlite3.Connection]:
        # 呼び出し側のトランザクションに参加する場合はクローズしない
        if conn is not None:
            yield conn
            return
        own = self._connect()
        try:
            yield own
        finally:
            own.close()

    def _init_db(self) -> None:
        with self._guard("init_db"), self._connection(None) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS mistakes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    game_id INTEGER NOT NULL,
                    move_number INTEGER NOT NULL CHECK(move_number >= 1),
                    position_fen TEXT NOT NULL,
                    played_move TEXT NOT NULL,
                    best_move TEXT NOT NULL DEFAULT '',
                    evaluation_before REAL NOT NULL DEFAULT 0,
                    evaluation_after REAL NOT NULL DEFAULT 0,
                    mistake_type TEXT NOT NULL CHECK(mistake_type IN ('blunder', 'mistake', 'inaccuracy')),
                    analysis TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS study_sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    mistake_id INTEGER NOT NULL UNIQUE,
                    next_review TEXT NOT NULL,
                    interval_days INTEGER NOT NULL DEFAULT 1 CHECK(interval_days >= 1),
                    times_reviewed INTEGER NOT NULL DEFAULT 0 CHECK(times_reviewed >= 0),
                    last_reviewed TEXT,
                    last_move TEXT,
                    FOREIGN KEY(mistake_id) REFERENCES mistakes(id)
                );
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_mistakes_game ON mistakes(game_id, move_number);")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_next_review ON study_sessions(next_review);")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block under a single-writer transaction.

        BEGIN IMMEDIATE で書き込みロックを先に取得するため、同じミスへの
        存在確認と INSERT/UPDATE の間に他の書き込みが割り込まない。
        """
        with self._guard("connect"):
            conn = self._connect()
        try:
            with self._guard("begin"):
                conn.execute("BEGIN IMMEDIATE;")
            try:
                yield conn
            except BaseException:
                try:
                    conn.execute("ROLLBACK;")
                except sqlite3.Error as rollback_exc:
                    logger.warning("rollback_failed", error=repr(rollback_exc))
                raise
            with self._guard("commit"):
                conn.execute("COMMIT;")
        finally:
            conn.close()

    # --- row mapping ---
    @staticmethod
    def _row_to_mistake(row: sqlite3.Row) -> Mistake:
        return Mistake(
            id=int(row["id"]),
            game_id=int(row["game_id"]),
            move_number=int(row["move_number"]),
            position_fen=row["position_fen"],
            played_move=row["played_move"],
            best_move=row["best_move"] or "",
            evaluation_before=float(row["evaluation_before"]),
            evaluation_after=float(row["evaluation_after"]),
            mistake_type=MistakeType(row["mistake_type"]),
            analysis=row["analysis"] or "",
        )

    @staticmethod
    def _row_to_session(row: sqlite3.Row, id_column: str = "id") -> StudySession:
        last_reviewed = row["last_reviewed"]
        return StudySession(
            id=int(row[id_column]),
            mistake_id=int(row["mistake_id"]),
            next_review_date=date.fromisoformat(row["next_review"]),
            interval_days=int(row["interval_days"]),
            times_reviewed=int(row["times_reviewed"]),
            last_reviewed_at=datetime.fromisoformat(last_reviewed) if last_reviewed else None,
            last_move=row["last_move"],
        )

    @staticmethod
    def _session_params(session: StudySession) -> tuple[Any, ...]:
        return (
            session.next_review_date.isoformat(),
            session.interval_days,
            session.times_reviewed,
            session.last_reviewed_at.isoformat() if session.last_reviewed_at else None,
            session.last_move,
        )

    # --- mistakes ---
    def record_mistake(self, mistake: Mistake, conn: Optional[sqlite3.Connection] = None) -> int:
        """Insert a mistake and return its id. Any ``id`` on the input is ignored."""
        now = datetime.now(timezone.utc).isoformat()
        with self._guard("record_mistake"), self._connection(conn) as c:
            cur = c.execute(
                """
                INSERT INTO mistakes(
                    game_id, move_number, position_fen, played_move, best_move,
                    evaluation_before, evaluation_after, mistake_type, analysis, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    mistake.game_id,
                    mistake.move_number,
                    mistake.position_fen,
                    mistake.played_move,
                    mistake.best_move or "",
                    float(mistake.evaluation_before),
                    float(mistake.evaluation_after),
                    mistake.mistake_type.value,
                    mistake.analysis or "",
                    now,
                ),
            )
            mistake_id = int(cur.lastrowid)
        logger.info(
            "mistake_recorded",
            mistake_id=mistake_id,
            game_id=mistake.game_id,
            move_number=mistake.move_number,
            mistake_type=mistake.mistake_type.value,
        )
        return mistake_id

    def get_mistake(self, mistake_id: int, conn: Optional[sqlite3.Connection] = None) -> Optional[Mistake]:
        with self._guard("get_mistake"), self._connection(conn) as c:
            row = c.execute(f"SELECT {_MISTAKE_COLUMNS} FROM mistakes WHERE id = ?;", (mistake_id,)).fetchone()
        return self._row_to_mistake(row) if row is not None else None

    def list_mistakes_by_game(self, game_id: int) -> List[Mistake]:
        """Return a game's mistakes, latest move first."""
        with self._guard("list_mistakes_by_game"), self._connection(None) as c:
            rows = c.execute(
                f"SELECT {_MISTAKE_COLUMNS} FROM mistakes WHERE game_id = ? ORDER BY move_number DESC, id DESC;",
                (game_id,),
            ).fetchall()
        return [self._row_to_mistake(row) for row in rows]

    # --- study sessions ---
    def find_session(self, mistake_id: int, conn: Optional[sqlite3.Connection] = None) -> Optional[StudySession]:
        with self._guard("find_session"), self._connection(conn) as c:
            row = c.execute(
                f"SELECT {_SESSION_COLUMNS} FROM study_sessions WHERE mistake_id = ?;", (mistake_id,)
            ).fetchone()
        return self._row_to_session(row) if row is not None else None

    def create_session(self, session: StudySession, conn: Optional[sqlite3.Connection] = None) -> StudySession:
        """Insert a new session. Raises ConflictError if the mistake already has one."""
        with self._guard("create_session"), self._connection(conn) as c:
            try:
                cur = c.execute(
                    """
                    INSERT INTO study_sessions(
                        mistake_id, next_review, interval_days, times_reviewed, last_reviewed, last_move
                    ) VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    (session.mistake_id, *self._session_params(session)),
                )
            except sqlite3.IntegrityError as exc:
                message = str(exc)
                if "UNIQUE" in message:
                    raise ConflictError(f"study session already exists for mistake {session.mistake_id}") from exc
                if "FOREIGN KEY" in message:
                    raise NotFoundError(f"mistake {session.mistake_id} not found") from exc
                raise
        return dataclasses.replace(session, id=int(cur.lastrowid))

    def update_session(
        self, mistake_id: int, /, conn: Optional[sqlite3.Connection] = None, **fields: Any
    ) -> StudySession:
        """Update scheduling fields of an existing session and return the new state."""
        unknown = set(fields) - _UPDATABLE_SESSION_FIELDS
        if unknown:
            raise InvalidInputError(f"cannot update session fields: {sorted(unknown)}")
        with self._guard("update_session"), self._connection(conn) as c:
            current = self.find_session(mistake_id, conn=c)
            if current is None:
                raise NotFoundError(f"no study session for mistake {mistake_id}")
            updated = dataclasses.replace(current, **fields)
            c.execute(
                """
                UPDATE study_sessions
                SET next_review = ?, interval_days = ?, times_reviewed = ?, last_reviewed = ?, last_move = ?
                WHERE mistake_id = ?;
                """,
                (*self._session_params(updated), mistake_id),
            )
        return updated

    # --- due selection ---
    def next_due(self, today: date) -> Optional[DueReview]:
        """Return the earliest-overdue session joined with its mistake, or None.

        Ties on next_review are broken by session id so the order is stable.
        """
        with self._guard("next_due"), self._connection(None) as c:
            row = c.execute(
                """
                SELECT m.id, m.game_id, m.move_number, m.position_fen, m.played_move, m.best_move,
                       m.evaluation_before, m.evaluation_after, m.mistake_type, m.analysis,
                       s.id AS session_id, s.mistake_id, s.next_review, s.interval_days,
                       s.times_reviewed, s.last_reviewed, s.last_move
                FROM study_sessions s
                JOIN mistakes m ON m.id = s.mistake_id
                WHERE s.next_review <= ?
                ORDER BY s.next_review ASC, s.id ASC
                LIMIT 1;
                """,
                (today.isoformat(),),
            ).fetchone()
        if row is None:
            return None
        return DueReview(mistake=self._row_to_mistake(row), session=self._row_to_session(row, "session_id"))

    def count_due(self, today: date) -> int:
        with self._guard("count_due"), self._connection(None) as c:
            row = c.execute(
                "SELECT COUNT(1) AS c FROM study_sessions WHERE next_review <= ?;", (today.isoformat(),)
            ).fetchone()
        return int(row["c"])
