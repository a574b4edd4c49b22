import json

from kanji_quiz.db.sqlite import transaction

QUESTION_COLUMNS = {
    "kanji": "kanji",
    "options": "options",
    "imagePath": "image_path",
    "questionJa": "question_ja",
    "questionEn": "question_en",
    "hintJa": "hint_ja",
    "hintEn": "hint_en",
    "isActive": "is_active",
    "isGlobal": "is_global",
    "ownerUserId": "owner_user_id",
}


def visible_to(requester_id: str):
    """WHERE fragment for the rows a non-owner may see."""
    return "(is_global = 1 OR owner_user_id = ?)", [requester_id]


def _to_column(field: str, value):
    if field == "options":
        return json.dumps(list(value), ensure_ascii=False)
    if field in ("isActive", "isGlobal"):
        return 1 if value else 0
    return value


def question_from_row(row) -> dict:
    return {
        "id": row["id"],
        "kanji": row["kanji"],
        "options": json.loads(row["options"]),
        "imagePath": row["image_path"],
        "questionJa": row["question_ja"],
        "questionEn": row["question_en"],
        "hintJa": row["hint_ja"],
        "hintEn": row["hint_en"],
        "isActive": bool(row["is_active"]),
        "isGlobal": bool(row["is_global"]),
        "ownerUserId": row["owner_user_id"],
    }


def log_from_row(row) -> dict:
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "score": row["score"],
        "totalQuestions": row["total_questions"],
        "completedAt": row["completed_at"],
    }


class Repo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def init_db(self):
        with transaction(self.db_path) as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS quiz_questions (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  kanji TEXT NOT NULL,
                  options TEXT NOT NULL,
                  image_path TEXT NOT NULL,
                  question_ja TEXT NOT NULL,
                  question_en TEXT NOT NULL,
                  hint_ja TEXT,
                  hint_en TEXT,
                  is_active INTEGER NOT NULL DEFAULT 1,
                  is_global INTEGER NOT NULL DEFAULT 0,
                  owner_user_id TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS learning_logs (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  user_id TEXT NOT NULL,
                  score INTEGER NOT NULL,
                  total_questions INTEGER NOT NULL,
                  completed_at TEXT NOT NULL
                )
                """
            )

    # quiz_questions
    def select_questions(self, requester_id: str | None = None, active_only: bool = False):
        clauses, params = [], []
        if requester_id is not None:
            cond, cond_params = visible_to(requester_id)
            clauses.append(cond)
            params.extend(cond_params)
        if active_only:
            clauses.append("is_active = 1")

        sql = "SELECT * FROM quiz_questions"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY id ASC"

        with transaction(self.db_path) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [question_from_row(r) for r in rows]

    def get_question(self, question_id: int, requester_id: str | None = None):
        sql, params = "SELECT * FROM quiz_questions WHERE id = ?", [question_id]
        if requester_id is not None:
            cond, cond_params = visible_to(requester_id)
            sql += " AND " + cond
            params.extend(cond_params)
        with transaction(self.db_path) as conn:
            row = conn.execute(sql, params).fetchone()
        return question_from_row(row) if row else None

    def insert_question(self, data: dict) -> dict:
        fields = list(QUESTION_COLUMNS)
        cols = ", ".join(QUESTION_COLUMNS[f] for f in fields)
        marks = ", ".join("?" for _ in fields)
        with transaction(self.db_path) as conn:
            cur = conn.execute(
                f"INSERT INTO quiz_questions({cols}) VALUES ({marks})",
                [_to_column(f, data[f]) for f in fields],
            )
            row = conn.execute("SELECT * FROM quiz_questions WHERE id = ?", (cur.lastrowid,)).fetchone()
        return question_from_row(row)

    def update_question(self, question_id: int, data: dict):
        fields = [f for f in QUESTION_COLUMNS if f in data]
        if not fields:
            return self.get_question(question_id)

        assignments = ", ".join(f"{QUESTION_COLUMNS[f]} = ?" for f in fields)
        params = [_to_column(f, data[f]) for f in fields] + [question_id]
        with transaction(self.db_path) as conn:
            cur = conn.execute(f"UPDATE quiz_questions SET {assignments} WHERE id = ?", params)
            if cur.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM quiz_questions WHERE id = ?", (question_id,)).fetchone()
        return question_from_row(row)

    def delete_question(self, question_id: int) -> bool:
        with transaction(self.db_path) as conn:
            cur = conn.execute("DELETE FROM quiz_questions WHERE id = ?", (question_id,))
        return cur.rowcount > 0

    # learning_logs
    def insert_log(self, user_id: str, score: int, total_questions: int, completed_at: str) -> dict:
        with transaction(self.db_path) as conn:
            cur = conn.execute(
                """
                INSERT INTO learning_logs(user_id, score, total_questions, completed_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, score, total_questions, completed_at),
            )
            row = conn.execute("SELECT * FROM learning_logs WHERE id = ?", (cur.lastrowid,)).fetchone()
        return log_from_row(row)

    def select_logs_by_user(self, user_id: str):
        with transaction(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT * FROM learning_logs
                WHERE user_id = ?
                ORDER BY completed_at ASC, id ASC
                """,
                (user_id,),
            ).fetchall()
        return [log_from_row(r) for r in rows]
