"""
Profile writes for the profile sync engine.

One upsert per updated user/platform pair. The user's aggregate score is
recomputed from all of their platform profiles in the same transaction.
"""

from psycopg.types.json import Jsonb

from codesync.db.helpers import execute_transaction
from codesync.features.profile_sync.domain.models import ProfileStats
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

UPSERT_PROFILE_QUERY = """
    INSERT INTO platform_profiles (
        user_id, platform, username, score, problems_solved,
        rating, rank, details, fetched_at, updated_at
    )
    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, NOW())
    ON CONFLICT (user_id, platform)
    DO UPDATE SET
        username = EXCLUDED.username,
        score = EXCLUDED.score,
        problems_solved = EXCLUDED.problems_solved,
        rating = EXCLUDED.rating,
        rank = EXCLUDED.rank,
        details = EXCLUDED.details,
        fetched_at = EXCLUDED.fetched_at,
        updated_at = NOW()
"""

UPDATE_TOTAL_SCORE_QUERY = """
    UPDATE users
    SET total_score = (
            SELECT COALESCE(SUM(score), 0)
            FROM platform_profiles
            WHERE user_id = %s
        ),
        updated_at = NOW()
    WHERE id = %s
"""


class PostgresProfileStore:
    async def upsert(self, user_id: str, platform: str, stats: ProfileStats) -> None:
        """
        Persist one platform profile and refresh the user's total score.

        Raises:
            DatabaseError: If the transaction fails
        """
        await execute_transaction(
            [
                (
                    UPSERT_PROFILE_QUERY,
                    (
                        user_id,
                        platform,
                        stats.username,
                        stats.score,
                        stats.problems_solved,
                        stats.rating,
                        stats.rank,
                        Jsonb(stats.details),
                        stats.fetched_at,
                    ),
                ),
                (UPDATE_TOTAL_SCORE_QUERY, (user_id, user_id)),
            ]
        )

        logger.debug(
            "Platform profile upserted",
            user_id=user_id,
            platform=platform,
            score=stats.score,
        )
