"""
Normalized platform scores.

Each function maps raw platform statistics to a single integer score so that
users can be ranked across platforms. A user's total score is the sum of
their platform scores.
"""

import math


def leetcode_score(easy: int, medium: int, hard: int, ranking: int = 0) -> int:
    score = easy * 20 + medium * 40 + hard * 80
    if ranking and ranking > 0:
        score += 2000 * math.exp(-ranking / 10000)
    return round(score)


def codeforces_rating_score(rating: int) -> float:
    if rating < 1200:
        return rating * 0.2
    if rating < 1900:
        return 240 + (rating - 1200) * 0.5
    if rating < 2400:
        return 590 + (rating - 1900) * 0.8
    return 990 + (rating - 2400) * 1.2


def codeforces_score(rating: int, problems_solved: int, contests: int) -> int:
    raw = (
        codeforces_rating_score(rating) * 1.5
        + min(problems_solved * 20, 1000)
        + min(contests * 30, 600)
    )
    return min(round(raw), 10000)


def geeksforgeeks_score(coding_score: int, problems_solved: int, institute_rank: int = 0) -> int:
    score = min(3000, coding_score * 3)
    score += min(5000, problems_solved * 50 * math.exp(-problems_solved / 100))
    if institute_rank and institute_rank > 0:
        score += min(2000, 2000 * math.exp(-institute_rank / 1000))
    return round(score)


def geeksforgeeks_rank(score: int) -> str:
    if score >= 8000:
        return "Code Grandmaster"
    if score >= 6000:
        return "Code Master"
    if score >= 4000:
        return "Code Expert"
    if score >= 2000:
        return "Code Ninja"
    if score >= 1000:
        return "Code Warrior"
    return "Code Enthusiast"


def github_score(stars: int, commits: int, followers: int) -> int:
    return stars * 10 + commits * 5 + followers * 2


def hackerrank_score(problems_solved: int, stars: int) -> int:
    return min(problems_solved * 50, 5000) + min(stars * 100, 5000)
