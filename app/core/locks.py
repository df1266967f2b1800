"""
Row locks for team-scoped mutations.

Check-ins and membership changes on the same team serialize on the team
row (``SELECT ... FOR UPDATE``). Locks are always taken in ascending id
order so two batches touching overlapping teams cannot deadlock. Locked
rows are reloaded even when the session already holds them.
"""

from sqlalchemy import Select, select

from app.models.team import Team


def with_team_lock(team_id: int) -> Select:
    """Select a single team row for update."""
    return (
        select(Team)
        .where(Team.id == team_id)
        .with_for_update(nowait=False)
        .execution_options(populate_existing=True)
    )


def lock_teams(team_ids: list[int]) -> Select:
    """Select several team rows for update, ordered by id."""
    return (
        select(Team)
        .where(Team.id.in_(team_ids))
        .order_by(Team.id)
        .with_for_update(nowait=False)
        .execution_options(populate_existing=True)
    )
