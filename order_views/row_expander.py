# =============================================================================
# ROW EXPANDER
# =============================================================================
# - Execute a join plan against the entity store as explicit pandas merges
# - Let one-to-many relations fan rows out; never let lookups multiply rows
# - Null-fill unmatched outer joins and report orphaned foreign keys


from typing import Callable, Iterator, Optional

import pandas as pd

from order_views.config import ORDER_CHILD_RELATIONS
from order_views.entity_store import EntityStore
from order_views.join_planner import MANY_TO_ONE, ONE_TO_ONE, JoinPlan, JoinStep
from order_views.report import Report, log_info, log_integrity


BaseFilter = Callable[[pd.DataFrame], pd.DataFrame]


# ------------------------------------------------------------
# RIGHT-SIDE PREPARATION
# ------------------------------------------------------------

def _prepare_right(store: EntityStore, step: JoinStep,
                   report: Optional[Report]
                   ) -> pd.DataFrame:
    if step.resolve is not None:
        right = store.geolocation_lookup(step.resolve)
    else:
        right = store.relation(step.relation)

    # Null keys never match
    right = right[right[step.right_key].notna()]

    if step.cardinality in (ONE_TO_ONE, MANY_TO_ONE):
        duplicated = right.duplicated(subset=[step.right_key])
        log_integrity(
            'duplicate_lookup_key',
            int(duplicated.sum()),
            f'{step.relation}: {int(duplicated.sum())} duplicated `{step.right_key}` '
            f'value(s), keeping first occurrence',
            report
            )
        right = right[~duplicated]

    if step.alias is not None:
        right = right.rename(columns={
            col: f'{step.alias}_{col}'
            for col in right.columns if col != step.right_key
        })

    return right


def _right_frame(store: EntityStore, step: JoinStep,
                 report: Optional[Report]
                 ) -> pd.DataFrame:
    """
    Order children are sharded per partition. Reference relations are
    whole in every shard, so their lookup frame and its duplicate count
    are produced once.
    """

    if step.relation in ORDER_CHILD_RELATIONS:

        return _prepare_right(store, step, report)

    key = (step.relation, step.right_key, step.resolve, step.alias)

    return store.shared_lookup(key, lambda: _prepare_right(store, step, report))


# ------------------------------------------------------------
# EXPANSION
# ------------------------------------------------------------

def join_step(left: pd.DataFrame, right: pd.DataFrame, step: JoinStep,
              report: Optional[Report] = None
              ) -> pd.DataFrame:
    """
    Apply one planned join.

    Outer steps keep every left row; unmatched right fields stay null.
    """

    merged = left.merge(
        right,
        how=step.how,
        left_on=step.left_key,
        right_on=step.right_key,
        suffixes=('', f'_{step.relation}'),
        indicator=True,
    )

    if step.how == 'left':
        orphaned = (merged['_merge'] == 'left_only') & merged[step.left_key].notna()
        log_integrity(
            'orphaned_foreign_key',
            int(orphaned.sum()),
            f'{step.relation}: {int(orphaned.sum())} row(s) with `{step.left_key}` '
            f'not found, kept with null fields',
            report
            )
    else:
        left_keys = left[step.left_key]
        dropped = int((~left_keys.isin(right[step.right_key])).sum())
        if dropped:
            log_info(f'{step.relation}: inner join dropped {dropped} row(s) without a match', report)

    merged = merged.drop(columns=['_merge'])
    if step.left_key != step.right_key:
        merged = merged.drop(columns=[step.right_key])

    return merged


def expand_rows(store: EntityStore,
                plan: JoinPlan,
                base_filter: Optional[BaseFilter] = None,
                report: Optional[Report] = None
                ) -> pd.DataFrame:
    """
    Run every step of the plan, starting from the (optionally filtered)
    target relation. Grain of the result is the finest fan-out relation.
    """

    rows = store.relation(plan.target)
    if base_filter is not None:
        rows = base_filter(rows)

    for step in plan.steps:
        right = _right_frame(store, step, report)
        rows = join_step(rows, right, step, report)

    return rows.reset_index(drop=True)


def iter_expanded_rows(store: EntityStore,
                       plan: JoinPlan,
                       partitions: int = 1,
                       base_filter: Optional[BaseFilter] = None,
                       report: Optional[Report] = None
                       ) -> Iterator[pd.DataFrame]:
    """
    Lazy form of `expand_rows`: one frame per order-id partition.
    """

    for part in store.partition(partitions):
        yield expand_rows(part, plan, base_filter, report)


# =============================================================================
# END OF SCRIPT
# =============================================================================
