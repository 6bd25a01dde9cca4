from codesync.features.profile_sync.adapters.base import HttpProfileAdapter
from codesync.features.profile_sync.adapters.scoring import leetcode_score
from codesync.features.profile_sync.domain.models import ProfileStats

LEETCODE_STATS_URL = "https://leetcode-stats-api.herokuapp.com/{username}"


class LeetCodeAdapter(HttpProfileAdapter):
    platform = "leetcode"

    async def _fetch(self, username: str) -> ProfileStats:
        data = await self._get_json(LEETCODE_STATS_URL.format(username=username), username)

        if not isinstance(data, dict) or data.get("status") != "success":
            message = data.get("message") if isinstance(data, dict) else None
            raise self._rejected(username, message or "User not found on leetcode")

        easy = data.get("easySolved") or 0
        medium = data.get("mediumSolved") or 0
        hard = data.get("hardSolved") or 0
        ranking = data.get("ranking") or 0

        return ProfileStats(
            platform=self.platform,
            username=username,
            score=leetcode_score(easy, medium, hard, ranking),
            problems_solved=data.get("totalSolved") or 0,
            rank=str(ranking) if ranking else "unrated",
            details={
                "easy_solved": easy,
                "medium_solved": medium,
                "hard_solved": hard,
                "ranking": ranking,
                "reputation": data.get("reputation") or 0,
                "contribution_points": data.get("contributionPoints") or 0,
            },
        )
