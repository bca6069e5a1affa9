import httpx
import asyncio
import json
import logging
from datetime import datetime, timedelta

from . import config, database

logger = logging.getLogger(__name__)


async def get(url: str, use_cache: bool = True):
    """
    A generic, caching GET request for the Sleeper API.
    """
    db = await database.get_db_connection()
    try:
        # 1. Check cache
        if use_cache:
            cursor = await db.execute("SELECT data, timestamp FROM api_cache WHERE url = ?", (url,))
            row = await cursor.fetchone()

            if row:
                cached_data = json.loads(row["data"])
                timestamp = datetime.fromisoformat(row["timestamp"])
                if datetime.utcnow() - timestamp < timedelta(seconds=config.CACHE_TTL_SECONDS):
                    return cached_data

        # 2. If not in cache or stale, fetch from API
        async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS) as client:
            logger.debug("GET %s", url)
            response = await client.get(url)
            response.raise_for_status()
            fresh_data = response.json()

            # 3. Store in cache
            await db.execute(
                "INSERT OR REPLACE INTO api_cache (url, data, timestamp) VALUES (?, ?, ?)",
                (url, json.dumps(fresh_data), datetime.utcnow().isoformat()),
            )
            await db.commit()
            return fresh_data

    finally:
        await db.close()


async def get_league(league_id: str):
    url = f"{config.API_URL}/league/{league_id}"
    return await get(url)


async def get_league_history(league_id: str):
    history = []
    current_league_id = league_id

    while current_league_id:
        try:
            league = await get_league(current_league_id)
        except httpx.HTTPStatusError:
            logger.warning("League %s missing from history chain, stopping", current_league_id)
            break
        if not league:
            break
        history.append(league)
        current_league_id = league.get("previous_league_id")

    return history


async def get_league_rosters(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/rosters"
    # Rosters change every week; always hit the API
    return await get(url, use_cache=False)


async def get_league_users(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/users"
    return await get(url)


async def get_league_drafts(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/drafts"
    return await get(url)


async def get_draft(draft_id: str):
    url = f"{config.API_URL}/draft/{draft_id}"
    # Status and order change until the draft completes; the resolver memoizes completed drafts
    return await get(url, use_cache=False)


async def get_draft_picks(draft_id: str):
    url = f"{config.API_URL}/draft/{draft_id}/picks"
    return await get(url, use_cache=False)


async def get_league_traded_picks(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/traded_picks"
    # Ownership snapshot; must reflect the latest trades
    return await get(url, use_cache=False)


async def get_all_players():
    url = f"{config.API_URL}/players/nfl"
    return await get(url)


async def get_league_transactions(league_id: str, week: int):
    url = f"{config.API_URL}/league/{league_id}/transactions/{week}"
    try:
        return await get(url)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            return []
        raise


async def get_all_league_transactions(league_id: str):
    # Week 0 holds offseason transactions
    transaction_tasks = [
        get_league_transactions(league_id, week) for week in range(0, config.REGULAR_SEASON_WEEKS + 1)
    ]
    weekly_transactions_results = await asyncio.gather(*transaction_tasks, return_exceptions=True)

    all_transactions = []
    for week, result in enumerate(weekly_transactions_results):
        if isinstance(result, list):
            all_transactions.extend(result)
        elif isinstance(result, Exception):
            logger.warning("Could not fetch week %s transactions for league %s: %r", week, league_id, result)

    return all_transactions
