"""
Roster reads for the profile sync engine.

The roster is read once per job. Users keep their platform handles in a JSONB
map ``platform_usernames``; a null handle means the platform is not
configured for that user.
"""

from codesync.db.helpers import fetch_all, with_db_retry
from codesync.features.profile_sync.domain.models import RosterUser
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class PostgresRosterProvider:
    """Loads the active users and their configured platform usernames."""

    @with_db_retry(max_retries=3, base_delay=0.5)
    async def list_all_users(self) -> list[RosterUser]:
        query = """
            SELECT id, name, email, platform_usernames
            FROM users
            WHERE is_active = true
            ORDER BY created_at
        """

        rows = await fetch_all(query)
        roster = [
            RosterUser(
                user_id=str(row["id"]),
                name=row.get("name") or "",
                email=row.get("email"),
                platform_usernames={
                    platform: username
                    for platform, username in (row.get("platform_usernames") or {}).items()
                    if username is not None
                },
            )
            for row in rows
        ]

        logger.info("Roster loaded", user_count=len(roster))
        return roster
