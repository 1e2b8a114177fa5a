from datetime import date, datetime
from typing import Any

import psycopg
from psycopg import errors
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from regforms.database.connection import Database
from regforms.database.models import DocumentPage, DocumentRecord
from regforms.documents.exceptions import DocumentNotFoundError, StoreWriteError

_COLUMNS = """
    id, reference, document_type, user_data, file_path_fr, file_path_ar,
    dolibarr_id, created_at, updated_at
"""

# Fields inside user_data that may be used for identifier lookups.
IDENTIFIER_COLUMNS: frozenset[str] = frozenset({"Num_CIN", "nif"})


class DocumentRepository:
    """Database operations for the documents table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def insert(
        self,
        reference: str,
        document_type: str,
        user_data: dict[str, Any],
        file_path_fr: str,
        file_path_ar: str,
        dolibarr_id: int | None = None,
    ) -> DocumentRecord:
        """Insert a new document row.

        Raises:
            StoreWriteError: on a duplicate reference or any database failure.
        """
        try:
            with self._db.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO documents
                        (reference, document_type, user_data, file_path_fr,
                         file_path_ar, dolibarr_id)
                        VALUES (%s, %s, %s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (
                            reference,
                            document_type,
                            Jsonb(user_data),
                            file_path_fr,
                            file_path_ar,
                            dolibarr_id,
                        ),
                    )
                    row = cur.fetchone()
                conn.commit()
        except errors.UniqueViolation as exc:
            raise StoreWriteError(f"Reference {reference} already exists") from exc
        except psycopg.Error as exc:
            raise StoreWriteError(f"Failed to insert document {reference}: {exc}") from exc

        if row is None:
            raise StoreWriteError(f"Insert of document {reference} returned no row")
        return DocumentRecord.from_row(row)

    def update(
        self,
        reference: str,
        user_data: dict[str, Any],
        file_path_fr: str,
        file_path_ar: str,
    ) -> DocumentRecord:
        """Replace data and file paths of an existing row; created_at is untouched.

        Raises:
            DocumentNotFoundError: if no document with this reference exists.
            StoreWriteError: on any database failure.
        """
        try:
            with self._db.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        UPDATE documents
                        SET user_data = %s, file_path_fr = %s, file_path_ar = %s,
                            updated_at = NOW()
                        WHERE reference = %s
                        RETURNING {_COLUMNS}
                        """,
                        (Jsonb(user_data), file_path_fr, file_path_ar, reference),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise StoreWriteError(f"Failed to update document {reference}: {exc}") from exc

        if row is None:
            raise DocumentNotFoundError(f"Document {reference} not found")
        return DocumentRecord.from_row(row)

    def find_by_reference(self, reference: str) -> DocumentRecord | None:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM documents WHERE reference = %s",
                    (reference,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return DocumentRecord.from_row(row)

    def list_documents(
        self,
        document_type: str | None = None,
        start_date: date | datetime | None = None,
        end_date: date | datetime | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> DocumentPage:
        """List documents newest-first with optional filters and a total count."""
        conditions: list[str] = []
        params: list[Any] = []
        if document_type:
            conditions.append("document_type = %s")
            params.append(document_type)
        if start_date is not None:
            conditions.append("created_at >= %s")
            params.append(start_date)
        if end_date is not None:
            conditions.append("created_at <= %s")
            params.append(end_date)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM documents
                    {where}
                    ORDER BY created_at DESC
                    LIMIT %s OFFSET %s
                    """,
                    (*params, limit, offset),
                )
                rows = cur.fetchall()
                cur.execute(f"SELECT COUNT(*) AS total FROM documents {where}", tuple(params))
                count_row = cur.fetchone()

        total = int(count_row["total"]) if count_row else 0
        return DocumentPage(
            documents=[DocumentRecord.from_row(row) for row in rows],
            total=total,
            limit=limit,
            offset=offset,
        )

    def delete(self, reference: str) -> None:
        """Delete a document row.

        Raises:
            DocumentNotFoundError: if no document with this reference exists.
        """
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM documents WHERE reference = %s", (reference,))
                if cur.rowcount == 0:
                    raise DocumentNotFoundError(f"Document {reference} not found")
            conn.commit()

    def find_recent_by_identifier(
        self, field: str, value: str, limit: int = 5
    ) -> list[DocumentRecord]:
        """Find the newest documents whose stored data has ``field == value``."""
        if field not in IDENTIFIER_COLUMNS:
            raise ValueError(f"Unsupported identifier field '{field}'")
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM documents
                    WHERE user_data ->> %s = %s
                    ORDER BY created_at DESC
                    LIMIT %s
                    """,
                    (field, value, limit),
                )
                rows = cur.fetchall()
        return [DocumentRecord.from_row(row) for row in rows]
