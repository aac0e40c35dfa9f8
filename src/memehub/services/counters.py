"""Atomic counter updates on memes."""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from memehub.models.meme import Meme

COUNTERS = frozenset({"upvotes", "downvotes", "views"})


async def increment_counters(db: AsyncSession, meme_id: int, **deltas: int) -> bool:
    """Apply counter deltas to a meme in one ``UPDATE ... SET n = n + delta``.

    The arithmetic happens in the database, so concurrent increments are never
    lost. In-session Meme instances are not refreshed.

    Returns:
        True if the meme exists, False otherwise.
    """
    unknown = set(deltas) - COUNTERS
    if unknown:
        raise ValueError(f"Unknown meme counters: {', '.join(sorted(unknown))}")

    values = {name: getattr(Meme, name) + delta for name, delta in deltas.items() if delta}
    if not values:
        raise ValueError("No counter deltas given")

    statement = update(Meme).where(Meme.id == meme_id).values(**values)

    result = await db.execute(statement.execution_options(synchronize_session=False))
    return result.rowcount == 1
