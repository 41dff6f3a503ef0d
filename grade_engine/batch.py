"""
Batch execution with per-unit failure isolation.

Batch operations process independent units (one student or one response
each). A failing unit is logged and reported in the result; it never
aborts the rest of the batch.
"""

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from grade_engine.logging_utils import create_logger
from grade_engine.models import BatchItemResult, BatchResult

logger = create_logger("grade_engine.batch")


def run_batch(
    unit_ids: Sequence[str],
    work: Callable[[str], str | None],
    *,
    operation: str,
    max_workers: int = 1,
) -> BatchResult:
    """
    Run ``work`` for every unit and collect the outcomes.

    Args:
        unit_ids: Identifiers of the units to process.
        work: Callable processing one unit and returning its resulting status.
        operation: Operation name used in log events.
        max_workers: Thread count; 1 processes units sequentially.

    Returns:
        BatchResult with one item per unit, in input order.
    """
    def run_unit(unit_id: str) -> BatchItemResult:
        try:
            status = work(unit_id)
        except Exception as e:
            logger.exception("Batch unit failed", operation=operation, unit_id=unit_id)
            return BatchItemResult(unit_id=unit_id, success=False, error=str(e))
        return BatchItemResult(unit_id=unit_id, success=True, status=status)

    if max_workers <= 1 or len(unit_ids) <= 1:
        items = [run_unit(unit_id) for unit_id in unit_ids]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(unit_ids))) as executor:
            items = list(executor.map(run_unit, unit_ids))

    result = BatchResult(items=tuple(items))
    logger.info(
        "Batch completed",
        operation=operation,
        succeeded=result.succeeded,
        failed=result.failed,
    )
    return result
