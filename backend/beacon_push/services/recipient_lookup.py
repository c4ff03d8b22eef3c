"""
Per-recipient reads on a bounded thread pool. Each call gets its own DB session (sessions are not
thread-safe); a failed lookup drops that recipient only.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, TypeVar

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

T = TypeVar("T")


def lookup_per_recipient(
    session_factory: Callable[[], Session],
    uids: Iterable[str],
    fn: Callable[[Session, str], T],
    *,
    max_workers: int,
    what: str,
) -> dict[str, T]:
    """
    Run fn(db, uid) for every uid. Returns {uid: result} for lookups that succeeded;
    uids whose lookup raised are logged and left out (caller treats them as skipped).
    """
    uids = list(uids)
    results: dict[str, T] = {}
    if not uids:
        return results

    def _one(uid: str) -> T:
        db = session_factory()
        try:
            return fn(db, uid)
        finally:
            db.close()

    workers = max(1, min(len(uids), max_workers))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="push_lookup") as executor:
        future_to_uid = {executor.submit(_one, uid): uid for uid in uids}
        for future in as_completed(future_to_uid):
            uid = future_to_uid[future]
            try:
                results[uid] = future.result()
            except Exception as e:
                logger.warning("%s lookup failed for recipient %s (skipped): %s", what, uid, e, exc_info=True)
    return results
