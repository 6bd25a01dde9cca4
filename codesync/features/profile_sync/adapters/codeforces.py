"""
Codeforces adapter using the official API.

Three calls per user: user.info (rating and rank), user.rating (contest
history) and user.status (submissions, deduplicated into solved problems).
"""

from codesync.features.profile_sync.adapters.base import HttpProfileAdapter
from codesync.features.profile_sync.adapters.scoring import codeforces_score
from codesync.features.profile_sync.domain.models import ProfileStats

CODEFORCES_API_URL = "https://codeforces.com/api"

EASY_INDICES = {"A", "B"}
MEDIUM_INDICES = {"C", "D"}
HARD_INDICES = {"E", "F", "G", "H", "I", "J", "K"}


def count_solved_problems(submissions: list[dict]) -> dict[str, int]:
    """Count unique accepted problems, split by index letter difficulty."""
    solved: set[str] = set()
    counts = {"solved": 0, "accepted_submissions": 0, "easy": 0, "medium": 0, "hard": 0}

    for submission in submissions:
        if submission.get("verdict") != "OK":
            continue
        counts["accepted_submissions"] += 1

        problem = submission.get("problem") or {}
        index = str(problem.get("index", ""))
        problem_id = f"{problem.get('contestId')}_{index}"
        if problem_id in solved:
            continue
        solved.add(problem_id)

        letter = index[:1]
        if letter in EASY_INDICES:
            counts["easy"] += 1
        elif letter in MEDIUM_INDICES:
            counts["medium"] += 1
        elif letter in HARD_INDICES:
            counts["hard"] += 1

    counts["solved"] = len(solved)
    return counts


class CodeforcesAdapter(HttpProfileAdapter):
    platform = "codeforces"

    async def _fetch(self, username: str) -> ProfileStats:
        info = await self._get_json(
            f"{CODEFORCES_API_URL}/user.info",
            username,
            params={"handles": username},
            not_found_statuses=(400, 404),
        )
        if info.get("status") != "OK" or not info.get("result"):
            raise self._rejected(username, "User not found on codeforces")
        user = info["result"][0]

        history = await self._get_json(
            f"{CODEFORCES_API_URL}/user.rating", username, params={"handle": username}
        )
        contests = len(history.get("result") or []) if history.get("status") == "OK" else 0

        status = await self._get_json(
            f"{CODEFORCES_API_URL}/user.status",
            username,
            params={"handle": username, "from": 1, "count": 10000},
        )
        submissions = (status.get("result") or []) if status.get("status") == "OK" else []
        counts = count_solved_problems(submissions)

        rating = user.get("rating") or 0
        return ProfileStats(
            platform=self.platform,
            username=username,
            score=codeforces_score(rating, counts["solved"], contests),
            problems_solved=counts["solved"],
            rating=rating,
            rank=user.get("rank") or "unrated",
            details={
                "max_rating": user.get("maxRating") or 0,
                "contribution": user.get("contribution") or 0,
                "contests_participated": contests,
                "accepted_submissions": counts["accepted_submissions"],
                "easy_solved": counts["easy"],
                "medium_solved": counts["medium"],
                "hard_solved": counts["hard"],
            },
        )
