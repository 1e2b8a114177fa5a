from psycopg import sql
from psycopg.rows import dict_row

from regforms.database.connection import Database
from regforms.database.models import LookupItem


class LookupRepository:
    """Name lists backing the form dropdowns (equipment models, service offers)."""

    EQUIPMENT_MODELS = "cpe_models"
    SERVICE_OFFERS = "internet_offers"
    TABLES: frozenset[str] = frozenset({EQUIPMENT_MODELS, SERVICE_OFFERS})

    def __init__(self, db: Database, table: str) -> None:
        if table not in self.TABLES:
            raise ValueError(f"Unknown lookup table '{table}'. Choose from: {sorted(self.TABLES)}")
        self._db = db
        self._table = sql.Identifier(table)

    def list_all(self) -> list[LookupItem]:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    sql.SQL("SELECT id, name, created_at FROM {} ORDER BY name ASC").format(
                        self._table
                    )
                )
                rows = cur.fetchall()
        return [LookupItem(**row) for row in rows]

    def upsert(self, name: str) -> LookupItem:
        """Insert a name, or return the existing row with that name."""
        name = name.strip()
        if not name:
            raise ValueError("Name is required")
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    sql.SQL(
                        """
                        INSERT INTO {} (name) VALUES (%s)
                        ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name
                        RETURNING id, name, created_at
                        """
                    ).format(self._table),
                    (name,),
                )
                row = cur.fetchone()
            conn.commit()
        assert row is not None
        return LookupItem(**row)

    def delete(self, item_id: int) -> bool:
        """Delete by id; returns False when nothing was deleted."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    sql.SQL("DELETE FROM {} WHERE id = %s").format(self._table),
                    (item_id,),
                )
                deleted = cur.rowcount > 0
            conn.commit()
        return deleted
