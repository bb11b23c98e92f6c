"""Inventory CRUD operations."""

from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from .schema import ensure_schema

if TYPE_CHECKING:
    from ..pipeline import InventoryItemDraft


class InventoryDB:
    """Manages the inventory table."""

    def __init__(
        self, db_path: str | Path = "~/.config/fridgefriend/inventory.db"
    ) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def add_draft(self, draft: InventoryItemDraft, owner: str = "") -> int:
        """Insert a pipeline draft into the inventory.

        Returns:
            The inserted row ID.
        """
        conn = self._get_conn()
        spoilage = draft.spoilage
        cur = conn.execute(
            """INSERT INTO inventory
               (owner, product_name, quantity, purchase_date, expiry_date,
                confidence, spoilage_level, spoilage_percentage,
                low_confidence, status)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'active')""",
            (
                owner,
                draft.product_name,
                draft.quantity,
                draft.purchase_date.isoformat(),
                draft.expiry_date.isoformat(),
                draft.confidence,
                spoilage.level.value if spoilage else None,
                spoilage.spoilage_percentage if spoilage else None,
                int(draft.low_confidence),
            ),
        )
        conn.commit()
        return cur.lastrowid

    def list_items(self, owner: str = "", include_inactive: bool = False) -> list[dict]:
        """Return the owner's items ordered by expiry date (soonest first)."""
        conn = self._get_conn()
        query = "SELECT * FROM inventory WHERE owner = ?"
        if not include_inactive:
            query += " AND status = 'active'"
        query += " ORDER BY expiry_date, id"
        rows = conn.execute(query, (owner,)).fetchall()
        return [dict(r) for r in rows]

    def get_item(self, item_id: int) -> dict | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM inventory WHERE id = ?", (item_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_expiring_soon(
        self, owner: str = "", days: int = 7, today: date | None = None
    ) -> list[dict]:
        """Return active items with fewer than ``days`` days remaining.

        Items already past their expiry date are included.
        """
        conn = self._get_conn()
        target = (today or date.today()).isoformat()
        rows = conn.execute(
            """SELECT * FROM inventory
               WHERE owner = ?
                 AND status = 'active'
                 AND expiry_date < date(?, '+' || ? || ' days')
               ORDER BY expiry_date, id""",
            (owner, target, days),
        ).fetchall()
        return [dict(r) for r in rows]

    def mark_expired(self, today: date | None = None) -> int:
        """Set status='expired' for active items past their expiry_date.

        Returns:
            Number of rows updated.
        """
        conn = self._get_conn()
        target = (today or date.today()).isoformat()
        cur = conn.execute(
            """UPDATE inventory
               SET status = 'expired',
                   updated_at = datetime('now', 'localtime')
               WHERE status = 'active'
                 AND expiry_date < ?""",
            (target,),
        )
        conn.commit()
        return cur.rowcount

    def delete_item(self, item_id: int) -> bool:
        """Delete an inventory item by ID.

        Returns:
            True if a row was deleted.
        """
        conn = self._get_conn()
        cur = conn.execute("DELETE FROM inventory WHERE id = ?", (item_id,))
        conn.commit()
        return cur.rowcount > 0
