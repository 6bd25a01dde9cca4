"""
GitHub adapter.

The REST profile gives followers and public repos. With an access token the
GraphQL API adds the contribution count and stars received; without one (or
when GraphQL fails) public repos stand in for stars and contributions are 0.
"""

import httpx

from codesync.features.profile_sync.adapters.base import HttpProfileAdapter
from codesync.features.profile_sync.adapters.scoring import github_score
from codesync.features.profile_sync.domain.models import ProfileStats
from codesync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

GITHUB_USER_URL = "https://api.github.com/users/{username}"
GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"

CONTRIBUTIONS_QUERY = """
query($login: String!) {
  user(login: $login) {
    contributionsCollection { contributionCalendar { totalContributions } }
    repositories(first: 100, ownerAffiliations: OWNER, isFork: false) {
      nodes { stargazerCount }
    }
    followers { totalCount }
    following { totalCount }
  }
}
"""


class GitHubAdapter(HttpProfileAdapter):
    platform = "github"

    def __init__(self, client: httpx.AsyncClient, access_token: str | None = None, **kwargs):
        super().__init__(client, **kwargs)
        self.access_token = access_token

    async def _fetch(self, username: str) -> ProfileStats:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.access_token:
            headers["Authorization"] = f"token {self.access_token}"

        user = await self._get_json(
            GITHUB_USER_URL.format(username=username), username, headers=headers
        )

        followers = user.get("followers") or 0
        following = user.get("following") or 0
        public_repos = user.get("public_repos") or 0
        contributions = 0
        stars = 0

        if self.access_token:
            graph = await self._fetch_contributions(username)
            if graph:
                calendar = (graph.get("contributionsCollection") or {}).get(
                    "contributionCalendar"
                ) or {}
                contributions = calendar.get("totalContributions") or 0
                nodes = (graph.get("repositories") or {}).get("nodes") or []
                stars = sum(node.get("stargazerCount") or 0 for node in nodes)
                followers = (graph.get("followers") or {}).get("totalCount", followers)
                following = (graph.get("following") or {}).get("totalCount", following)

        stars = stars or public_repos
        return ProfileStats(
            platform=self.platform,
            username=username,
            score=github_score(stars, contributions, followers),
            problems_solved=contributions,
            details={
                "public_repos": public_repos,
                "total_commits": contributions,
                "followers": followers,
                "following": following,
                "stars_received": stars,
            },
        )

    async def _fetch_contributions(self, username: str) -> dict | None:
        try:
            response = await self.client.post(
                GITHUB_GRAPHQL_URL,
                json={"query": CONTRIBUTIONS_QUERY, "variables": {"login": username}},
                headers={"Authorization": f"bearer {self.access_token}"},
            )
            response.raise_for_status()
            return (response.json().get("data") or {}).get("user")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "GitHub GraphQL lookup failed, using REST profile only",
                username=username,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
