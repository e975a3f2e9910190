# fieldgallery/repositories/db.py
# SQLite file store behind the dev server. One table, rows shaped like
# the MediaFile wire model.
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

SCHEMA = """
CREATE TABLE IF NOT EXISTS files (
  id                  INTEGER PRIMARY KEY AUTOINCREMENT,
  project_id          INTEGER NOT NULL,
  file_name           TEXT NOT NULL,
  original_name       TEXT NOT NULL,
  file_path           TEXT NOT NULL,
  file_size           INTEGER NOT NULL DEFAULT 0,
  file_type           TEXT NOT NULL,
  mime_type           TEXT NOT NULL DEFAULT '',
  description         TEXT,
  created_at          TEXT NOT NULL,
  annotations         TEXT,
  annotated_image_url TEXT
);
CREATE INDEX IF NOT EXISTS idx_files_project ON files(project_id);
"""

_COLUMNS = (
    "id, project_id, file_name, original_name, file_path, file_size, file_type, "
    "mime_type, description, created_at, annotations, annotated_image_url"
)


def get_conn(db_path: Path) -> sqlite3.Connection:
    """
    Create a connection with row access by column name.
    Caller is responsible for closing (use 'with closing(get_conn(p)) as con').
    """
    # FastAPI may run the dependency and the endpoint on different threads
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = get_conn(db_path)
    try:
        con.executescript(SCHEMA)
    finally:
        con.close()


def row_to_wire(row: sqlite3.Row) -> Dict[str, Any]:
    """DB row -> camelCase dict accepted by MediaFile.model_validate."""
    return {
        "id": row["id"],
        "fileName": row["file_name"],
        "originalName": row["original_name"],
        "filePath": row["file_path"],
        "fileSize": row["file_size"],
        "fileType": row["file_type"],
        "mimeType": row["mime_type"],
        "description": row["description"],
        "createdAt": row["created_at"],
        "annotations": json.loads(row["annotations"]) if row["annotations"] else None,
        "annotatedImageUrl": row["annotated_image_url"],
    }


def insert_file(con: sqlite3.Connection, *, project_id: int, file_name: str, original_name: str,
                file_path: str, file_size: int, file_type: str, mime_type: str,
                description: Optional[str]) -> int:
    cur = con.execute(
        """
        INSERT INTO files (project_id, file_name, original_name, file_path, file_size,
                           file_type, mime_type, description, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (project_id, file_name, original_name, file_path, file_size, file_type, mime_type,
         description, datetime.now(timezone.utc).isoformat(timespec="seconds")),
    )
    con.commit()
    return int(cur.lastrowid)


def get_file(con: sqlite3.Connection, file_id: int) -> Optional[sqlite3.Row]:
    return con.execute(f"SELECT {_COLUMNS} FROM files WHERE id = ?", (file_id,)).fetchone()


def list_files(con: sqlite3.Connection, project_id: int) -> List[sqlite3.Row]:
    # server order = upload order
    return con.execute(
        f"SELECT {_COLUMNS} FROM files WHERE project_id = ? ORDER BY id ASC", (project_id,)
    ).fetchall()


def delete_file(con: sqlite3.Connection, file_id: int) -> bool:
    cur = con.execute("DELETE FROM files WHERE id = ?", (file_id,))
    con.commit()
    return cur.rowcount > 0


def save_annotations(con: sqlite3.Connection, file_id: int, annotations: List[Dict[str, Any]],
                     annotated_image_url: str) -> bool:
    cur = con.execute(
        "UPDATE files SET annotations = ?, annotated_image_url = ? WHERE id = ?",
        (json.dumps(annotations), annotated_image_url, file_id),
    )
    con.commit()
    return cur.rowcount > 0
