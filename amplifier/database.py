import sqlite3
import logging
from typing import Optional, List, Dict, Any

DB_NAME = ".amplifier.db"


def get_connection():
    """Get a database connection with row factory for dict-like access."""
    conn = sqlite3.connect(DB_NAME)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    try:
        conn = sqlite3.connect(DB_NAME)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                email TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # One row per analysis attempt
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS file_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL REFERENCES users(id),
                file_name TEXT NOT NULL,
                file_path TEXT NOT NULL,
                score INTEGER NOT NULL,
                feedback TEXT NOT NULL,
                corrected_code TEXT,
                analyzed_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_file_history_user ON file_history(user_id)")

        conn.commit()
        conn.close()
    except Exception as e:
        logging.error(f"Failed to initialize database: {e}")


# ============ User Functions ============

def create_user(username: str, email: str, password_hash: str) -> Optional[Dict[str, Any]]:
    try:
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO users (username, email, password_hash)
            VALUES (?, ?, ?)
        """, (username, email, password_hash))
        user_id = cursor.lastrowid
        conn.commit()
        cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cursor.fetchone()
        conn.close()
        return dict(row) if row else None
    except sqlite3.IntegrityError:
        logging.warning(f"User {username} already exists")
        return None
    except Exception as e:
        logging.error(f"Failed to create user {username}: {e}")
        return None


def get_user(user_id: int) -> Optional[Dict[str, Any]]:
    try:
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cursor.fetchone()
        conn.close()
        return dict(row) if row else None
    except Exception as e:
        logging.error(f"Failed to get user {user_id}: {e}")
        return None


def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    try:
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM users WHERE email = ?", (email,))
        row = cursor.fetchone()
        conn.close()
        return dict(row) if row else None
    except Exception as e:
        logging.error(f"Failed to get user by email: {e}")
        return None


def get_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    try:
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM users WHERE username = ?", (username,))
        row = cursor.fetchone()
        conn.close()
        return dict(row) if row else None
    except Exception as e:
        logging.error(f"Failed to get user {username}: {e}")
        return None


# ============ File History Functions ============

def save_file_history(
    user_id: int,
    file_name: str,
    file_path: str,
    score: int,
    feedback: str,
    corrected_code: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    try:
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO file_history
                (user_id, file_name, file_path, score, feedback, corrected_code)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (user_id, file_name, file_path, score, feedback, corrected_code))
        entry_id = cursor.lastrowid
        conn.commit()
        cursor.execute("SELECT * FROM file_history WHERE id = ?", (entry_id,))
        row = cursor.fetchone()
        conn.close()
        return dict(row) if row else None
    except Exception as e:
        logging.error(f"Failed to save file history for {file_path}: {e}")
        return None


def get_file_history(user_id: int, limit: int = 10) -> List[Dict[str, Any]]:
    try:
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute(
            "SELECT * FROM file_history WHERE user_id = ? ORDER BY analyzed_at DESC, id DESC LIMIT ?",
            (user_id, limit)
        )
        rows = cursor.fetchall()
        conn.close()
        return [dict(row) for row in rows]
    except Exception as e:
        logging.error(f"Failed to get file history for user {user_id}: {e}")
        return []


def delete_file_history(user_id: int, entry_id: int) -> bool:
    try:
        conn = get_connection()
        cursor = conn.cursor()
        cursor.execute(
            "DELETE FROM file_history WHERE id = ? AND user_id = ?",
            (entry_id, user_id)
        )
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        return deleted > 0
    except Exception as e:
        logging.error(f"Failed to delete file history entry {entry_id}: {e}")
        return False
