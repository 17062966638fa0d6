import asyncio
import logging
from typing import Any, Dict, Tuple

from upkeep.domain.maintenance_rules import PARTICIPANT_BATCH_SIZE, batched, normalize_ids
from upkeep.entity_store import EntityStore


async def _count_one(store: EntityStore, tournament_id: str) -> Tuple[str, int]:
    try:
        return tournament_id, await store.count({"tournament_id": tournament_id})
    except Exception as e:
        logging.warning(f"Participant count failed for tournament {tournament_id}: {e}")
        return tournament_id, 0


async def count_participants(
    store: EntityStore, ids: Any, *, batch_size: int = PARTICIPANT_BATCH_SIZE
) -> Dict[str, int]:
    """Count participants per tournament id.

    Ids are fetched ``batch_size`` at a time: concurrently within a batch,
    sequentially across batches. A failed count reports 0 for that id.

    Args:
        store (EntityStore): tournament participant store
        ids (Any): tournament ids; anything but a list counts as empty
        batch_size (int): concurrency ceiling against the store

    Returns:
        Dict[str, int]: count per requested id
    """
    counts: Dict[str, int] = {}
    for batch in batched(normalize_ids(ids), batch_size):
        results = await asyncio.gather(*(_count_one(store, tournament_id) for tournament_id in batch))
        for tournament_id, count in results:
            counts[tournament_id] = count
    return counts
