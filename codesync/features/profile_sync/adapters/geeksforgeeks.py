from codesync.features.profile_sync.adapters.base import HttpProfileAdapter
from codesync.features.profile_sync.adapters.scoring import geeksforgeeks_rank, geeksforgeeks_score
from codesync.features.profile_sync.domain.models import ProfileStats

GFG_API_URL = "https://geeks-for-geeks-api.vercel.app/{username}"

DIFFICULTIES = ("easy", "medium", "hard", "basic", "school")


class GeeksforGeeksAdapter(HttpProfileAdapter):
    platform = "geeksforgeeks"

    async def _fetch(self, username: str) -> ProfileStats:
        data = await self._get_json(GFG_API_URL.format(username=username), username)

        if not isinstance(data, dict) or not data.get("info"):
            raise self._rejected(username, "User not found on geeksforgeeks")

        info = data["info"]
        solved_stats = data.get("solvedStats") or {}
        by_difficulty = {
            level: (solved_stats.get(level) or {}).get("count") or 0 for level in DIFFICULTIES
        }
        problems_solved = info.get("totalProblemsSolved") or sum(by_difficulty.values())
        coding_score = info.get("codingScore") or 0
        institute_rank = info.get("instituteRank") or 0

        score = geeksforgeeks_score(coding_score, problems_solved, institute_rank)
        return ProfileStats(
            platform=self.platform,
            username=username,
            score=score,
            problems_solved=problems_solved,
            rank=geeksforgeeks_rank(score),
            details={
                "coding_score": coding_score,
                "institute_rank": institute_rank,
                "current_streak": info.get("currentStreak") or 0,
                "max_streak": info.get("maxStreak") or 0,
                "monthly_score": info.get("monthlyScore") or 0,
                **{f"{level}_solved": count for level, count in by_difficulty.items()},
            },
        )
