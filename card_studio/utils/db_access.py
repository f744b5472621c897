import json
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from card_studio.card_utils.card import CardData, card_from_row, card_to_row
from card_studio.card_utils.templates import TemplateError, load_template
from studio_logs.loggers import card_logger

DB_PATH = Path(os.getenv("CARD_STUDIO_DB", "db/CardStudio_DB.db"))

CARD_COLUMNS = (
    "id", "title", "description", "rarity", "tags", "image_url", "thumbnail_url",
    "template_id", "design_metadata", "publishing_options", "creator_attribution",
    "creator_id", "is_public", "visibility", "created_at", "updated_at",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_db_connection():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row  # Allows accessing columns by name
    return conn


def init_db():
    if not DB_PATH.parent.exists():
        DB_PATH.parent.mkdir(parents=True)

    card_logger.info("db_init", path=str(DB_PATH.resolve()))

    conn = get_db_connection()
    cursor = conn.cursor()

    # Cards Table
    # tags / design_metadata / publishing_options / creator_attribution hold JSON text
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS Cards (
        id TEXT NOT NULL PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT DEFAULT '',
        rarity TEXT NOT NULL DEFAULT 'common',
        tags TEXT DEFAULT '[]',
        image_url TEXT,
        thumbnail_url TEXT,
        template_id TEXT,
        design_metadata TEXT DEFAULT '{}',
        publishing_options TEXT DEFAULT '{}',
        creator_attribution TEXT DEFAULT '{}',
        creator_id TEXT,
        is_public BOOLEAN DEFAULT 0,
        visibility TEXT DEFAULT 'private',
        created_at TEXT,
        updated_at TEXT
    );
    """)

    # Templates Table - frames available to the wizard
    cursor.execute("""
    CREATE TABLE IF NOT EXISTS Templates (
        id TEXT NOT NULL PRIMARY KEY,
        name TEXT NOT NULL,
        category TEXT NOT NULL,
        description TEXT DEFAULT '',
        tags TEXT DEFAULT '[]',
        is_premium BOOLEAN DEFAULT 0,
        template_data TEXT DEFAULT '{}',
        template_path TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_cards_creator ON Cards(creator_id);")

    conn.commit()
    conn.close()


# ---------------------------------------------------------------- cards

def create_card_entry(card: CardData) -> bool:
    """Insert a new card. ``card.id`` must already be set."""
    if not card.id:
        raise ValueError("card.id must be set before insert")

    now = _now()
    card = card.model_copy(update={"created_at": card.created_at or now, "updated_at": now})
    row = card_to_row(card)

    conn = get_db_connection()
    cursor = conn.cursor()
    try:
        placeholders = ", ".join("?" for _ in CARD_COLUMNS)
        cursor.execute(
            f"INSERT INTO Cards ({', '.join(CARD_COLUMNS)}) VALUES ({placeholders})",
            tuple(row[c] for c in CARD_COLUMNS)
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError as e:
        card_logger.error("card_insert_integrity_error", card_id=card.id, error=str(e))
        return False
    except sqlite3.Error as e:
        card_logger.error("card_insert_failed", card_id=card.id, error=str(e))
        return False
    finally:
        conn.close()


def get_card_by_id(card_id: str) -> Optional[CardData]:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM Cards WHERE id = ?", (card_id,))
    row = cursor.fetchone()
    conn.close()
    if row:
        return card_from_row(dict(row))
    return None


def list_cards(creator_id: Optional[str] = None, rarity: Optional[str] = None,
               tag: Optional[str] = None, public_only: bool = False,
               limit: int = 50) -> List[CardData]:
    """Newest first. ``tag`` matches a whole tag inside the JSON list."""
    clauses = []
    params: List[Any] = []
    if creator_id:
        clauses.append("creator_id = ?")
        params.append(creator_id)
    if rarity:
        clauses.append("rarity = ?")
        params.append(rarity)
    if tag:
        clauses.append("tags LIKE ?")
        params.append(f'%{json.dumps(tag.lower())}%')
    if public_only:
        clauses.append("is_public = 1")

    query = "SELECT * FROM Cards"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY created_at DESC LIMIT ?"
    params.append(limit)

    conn = get_db_connection()
    cursor = conn.cursor()
    try:
        cursor.execute(query, params)
        return [card_from_row(dict(row)) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        card_logger.error("card_list_failed", error=str(e))
        return []
    finally:
        conn.close()


def update_card_entry(card: CardData) -> bool:
    """Overwrite every column of an existing card. False if it does not exist."""
    card = card.model_copy(update={"updated_at": _now()})
    row = card_to_row(card)
    columns = [c for c in CARD_COLUMNS if c not in ("id", "created_at")]

    conn = get_db_connection()
    cursor = conn.cursor()
    try:
        assignments = ", ".join(f"{c} = ?" for c in columns)
        cursor.execute(
            f"UPDATE Cards SET {assignments} WHERE id = ?",
            tuple(row[c] for c in columns) + (card.id,)
        )
        conn.commit()
        return cursor.rowcount > 0
    except sqlite3.Error as e:
        card_logger.error("card_update_failed", card_id=card.id, error=str(e))
        conn.rollback()
        return False
    finally:
        conn.close()


def delete_card_entry(card_id: str) -> bool:
    conn = get_db_connection()
    cursor = conn.cursor()
    try:
        cursor.execute("DELETE FROM Cards WHERE id = ?", (card_id,))
        conn.commit()
        return cursor.rowcount > 0
    except sqlite3.Error as e:
        card_logger.error("card_delete_failed", card_id=card_id, error=str(e))
        return False
    finally:
        conn.close()


# ------------------------------------------------------------ templates

def _template_from_row(row) -> Dict[str, Any]:
    data = dict(row)
    data["tags"] = json.loads(data.get("tags") or "[]")
    data["template_data"] = json.loads(data.get("template_data") or "{}")
    data["is_premium"] = bool(data.get("is_premium"))
    data.pop("created_at", None)
    return data


def get_templates(category: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    All registered templates, free ones first, then in registration order.
    The first entry is the default frame.
    """
    conn = get_db_connection()
    cursor = conn.cursor()
    try:
        if category:
            cursor.execute(
                "SELECT * FROM Templates WHERE category = ? ORDER BY is_premium, rowid",
                (category,)
            )
        else:
            cursor.execute("SELECT * FROM Templates ORDER BY is_premium, rowid")
        return [_template_from_row(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        card_logger.error("template_list_failed", error=str(e))
        return []
    finally:
        conn.close()


def get_template_by_id(template_id: str) -> Optional[Dict[str, Any]]:
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM Templates WHERE id = ?", (template_id,))
    row = cursor.fetchone()
    conn.close()
    if row:
        return _template_from_row(row)
    return None


def scan_and_register_templates(template_json_dir: Path) -> Dict[str, Any]:
    """
    Scan template_json/<category>/*.json and register any template id not yet
    in the Templates table.
    Returns dict with the ids added, skipped, and any per-file errors.
    """
    results = {
        "added": [],
        "skipped": [],
        "errors": []
    }

    conn = get_db_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("SELECT id FROM Templates")
        existing = {row["id"] for row in cursor.fetchall()}

        for category_dir in sorted(template_json_dir.iterdir()):
            if not category_dir.is_dir():
                continue

            category = category_dir.name

            for json_file in sorted(category_dir.glob("*.json")):
                try:
                    template = load_template(json_file, category=category)
                except json.JSONDecodeError:
                    results["errors"].append(f"{json_file.name}: Invalid JSON")
                    continue
                except TemplateError as e:
                    results["errors"].append(str(e))
                    continue

                if template["id"] in existing:
                    results["skipped"].append(template["id"])
                    continue

                cursor.execute("""
                    INSERT INTO Templates (id, name, category, description, tags, is_premium, template_data, template_path)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    template["id"],
                    template["name"],
                    template["category"],
                    template["description"],
                    json.dumps(template["tags"]),
                    1 if template["is_premium"] else 0,
                    json.dumps(template["template_data"]),
                    f"/{category}/{json_file.name}"
                ))
                existing.add(template["id"])
                results["added"].append(template["id"])

        conn.commit()

    except sqlite3.Error as e:
        results["errors"].append(f"Database error: {str(e)}")
    finally:
        conn.close()

    return results
