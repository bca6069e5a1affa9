import aiosqlite
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from . import config
from .exceptions import UpstreamUnavailable
from .models.lineage import TradeRecord

logger = logging.getLogger(__name__)


async def get_db_connection():
    db = await aiosqlite.connect(config.DATABASE_URL)
    db.row_factory = aiosqlite.Row
    return db


async def create_tables():
    async with aiosqlite.connect(config.DATABASE_URL) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS api_cache (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url TEXT UNIQUE NOT NULL,
                data TEXT NOT NULL,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS manual_trades (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                trade_date TEXT NOT NULL,
                override_of TEXT,
                active INTEGER NOT NULL DEFAULT 1,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """)
        await db.commit()


class ManualTradeRepository:
    """SQLite-backed ledger of manually entered trades."""

    async def list_trades(self, year: Optional[str] = None, include_inactive: bool = False) -> List[TradeRecord]:
        query = "SELECT data FROM manual_trades"
        clauses = []
        params = []
        if not include_inactive:
            clauses.append("active = 1")
        if year:
            clauses.append("substr(trade_date, 1, 4) = ?")
            params.append(str(year))
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY trade_date, created_at"

        try:
            db = await get_db_connection()
        except aiosqlite.Error as e:
            raise UpstreamUnavailable("manual trade ledger", e) from e
        try:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise UpstreamUnavailable("manual trade ledger", e) from e
        finally:
            await db.close()

        return [TradeRecord.model_validate_json(row["data"]) for row in rows]

    async def get_trade(self, trade_id: str) -> Optional[TradeRecord]:
        """Trade with this id, else a trade overriding it, active and newest first."""
        db = await get_db_connection()
        try:
            cursor = await db.execute(
                """
                SELECT data FROM manual_trades
                WHERE id = ? OR override_of = ?
                ORDER BY id = ? DESC, active DESC, updated_at DESC
                LIMIT 1
                """,
                (trade_id, trade_id, trade_id),
            )
            row = await cursor.fetchone()
        finally:
            await db.close()
        return TradeRecord.model_validate_json(row["data"]) if row else None

    async def upsert_trade(self, trade: TradeRecord) -> TradeRecord:
        now = datetime.utcnow().isoformat()
        db = await get_db_connection()
        try:
            await db.execute(
                """
                INSERT INTO manual_trades (id, data, trade_date, override_of, active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    data = excluded.data,
                    trade_date = excluded.trade_date,
                    override_of = excluded.override_of,
                    active = excluded.active,
                    updated_at = excluded.updated_at
                """,
                (trade.id, trade.model_dump_json(), trade.date, trade.override_of, int(trade.active), now, now),
            )
            await db.commit()
        finally:
            await db.close()
        logger.info("Saved manual trade %s", trade.id)
        return trade

    async def deactivate_trade(self, trade_id: str) -> bool:
        """Soft delete; returns False when the trade does not exist."""
        existing = await self.get_trade(trade_id)
        if existing is None:
            return False
        await self.upsert_trade(existing.model_copy(update={"active": False}))
        return True


if __name__ == "__main__":
    asyncio.run(create_tables())
