from codesync.features.profile_sync.adapters.base import HttpProfileAdapter
from codesync.features.profile_sync.adapters.scoring import hackerrank_score
from codesync.features.profile_sync.domain.models import ProfileStats

HACKERRANK_BADGES_URL = "https://www.hackerrank.com/rest/hackers/{username}/badges"

LANGUAGE_CATEGORY = "Language Proficiency"
SKILL_CATEGORY = "Specialized Skills"


class HackerRankAdapter(HttpProfileAdapter):
    platform = "hackerrank"

    async def _fetch(self, username: str) -> ProfileStats:
        data = await self._get_json(
            HACKERRANK_BADGES_URL.format(username=username),
            username,
            headers={"Accept": "application/json"},
        )

        if not isinstance(data, dict) or data.get("status") is not True:
            raise self._rejected(username, "User not found on hackerrank")

        solved = 0
        stars = 0
        language_badges: dict[str, dict] = {}
        skill_badges: dict[str, dict] = {}

        for badge in data.get("models") or []:
            solved += badge.get("solved") or 0
            stars += badge.get("stars") or 0

            summary = {
                "solved": badge.get("solved") or 0,
                "stars": badge.get("stars") or 0,
                "total_challenges": badge.get("total_challenges") or 0,
            }
            if badge.get("category_name") == LANGUAGE_CATEGORY:
                language_badges[badge.get("badge_name")] = summary
            elif badge.get("category_name") == SKILL_CATEGORY:
                skill_badges[badge.get("badge_name")] = summary

        return ProfileStats(
            platform=self.platform,
            username=username,
            score=hackerrank_score(solved, stars),
            problems_solved=solved,
            details={
                "total_stars": stars,
                "language_badges": language_badges,
                "skill_badges": skill_badges,
            },
        )
