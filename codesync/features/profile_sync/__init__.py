"""
Profile sync feature package.

Re-fetches every registered user's statistics from the supported coding
platforms and writes the merged result back into the profile store.
Subpackages:
    adapters    - per-platform HTTP adapters and score formulas
    api         - admin HTTP routes (start, status, cancel, active)
    domain      - job record, outcomes and typed errors
    repository  - in-memory job store and Postgres roster/profile access
    services    - worker pool, platform throttle and job controller
    jobs        - retention sweeper and daily scheduled sync
"""

__all__ = ["adapters", "api", "domain", "jobs", "repository", "services"]
