# =============================================================================
# ORDER AGGREGATOR
# =============================================================================
# - Derive per-row delivery, value and geography metrics
# - Collapse item fan-out back to one row per order
# - Resolve columns that should be single-valued per order deterministically


from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from order_views.report import Report, log_integrity


SECONDS_PER_DAY = 86400.0

GROUP_KEY = 'order_id'
ITEM_KEY = 'order_item_id'

ORDER_METRICS = [
    'items_in_order',
    'total_price',
    'total_freight',
    'total_order_value',
    'avg_product_weight',
]


# ------------------------------------------------------------
# PER-ROW DERIVED FIELDS
# ------------------------------------------------------------

def days_between(end: pd.Series, start: pd.Series) -> pd.Series:
    """
    Fractional days from `start` to `end`; null when either side is null.
    """

    return (end - start).dt.total_seconds() / SECONDS_PER_DAY


def add_delivery_metrics(df: pd.DataFrame) -> pd.DataFrame:
    delivered = df['order_delivered_customer_date']

    return df.assign(
        delivery_delay_days=days_between(delivered, df['order_estimated_delivery_date']),
        actual_delivery_days=days_between(delivered, df['order_purchase_timestamp']),
    )


def add_item_value(df: pd.DataFrame) -> pd.DataFrame:

    return df.assign(total_item_value=df['price'] + df['freight_value'])


def add_same_state_flag(df: pd.DataFrame) -> pd.DataFrame:
    # Null on either side counts as a different state
    customer_state = df['customer_state']
    seller_state = df['seller_state']
    same = customer_state.notna() & seller_state.notna() & (customer_state == seller_state)

    return df.assign(same_state_delivery=np.where(same, 1, 0).astype('int64'))


# ------------------------------------------------------------
# GROUPING
# ------------------------------------------------------------

def _check_single_valued(df: pd.DataFrame, columns: Sequence[str],
                         report: Optional[Report]
                         ) -> None:
    """
    Warn for every column that varies within an order.
    """

    if df.empty or not columns:

        return

    distinct = df.groupby(GROUP_KEY, sort=False)[list(columns)].nunique(dropna=False)

    for col in columns:
        ambiguous = int((distinct[col] > 1).sum())
        log_integrity(
            'ambiguous_group_value',
            ambiguous,
            f'{col}: {ambiguous} order(s) with more than one value, '
            f'keeping first encountered',
            report
            )


def aggregate_by_order(df: pd.DataFrame,
                       first_value_columns: Sequence[str],
                       report: Optional[Report] = None
                       ) -> pd.DataFrame:
    """
    Collapse an order x item row set to one row per order.

    Item metrics are computed over distinct items, so a second review row
    for the same order does not double the sums. `first_value_columns`
    take the first value encountered in input order.
    """

    first_value_columns = [c for c in first_value_columns if c != GROUP_KEY]

    if df.empty:

        return pd.DataFrame(columns=[GROUP_KEY] + first_value_columns + ORDER_METRICS)

    _check_single_valued(df, first_value_columns, report)

    firsts = (
        df.drop_duplicates(subset=[GROUP_KEY], keep='first')
        [[GROUP_KEY] + first_value_columns]
        .set_index(GROUP_KEY)
    )

    items = df.drop_duplicates(subset=[GROUP_KEY, ITEM_KEY], keep='first')
    items = items.assign(_item_value=items['price'] + items['freight_value'])

    metrics = items.groupby(GROUP_KEY, sort=False).agg(
        items_in_order=(ITEM_KEY, 'nunique'),
        total_price=('price', 'sum'),
        total_freight=('freight_value', 'sum'),
        total_order_value=('_item_value', 'sum'),
        avg_product_weight=('product_weight_g', 'mean'),
    )

    grouped = firsts.join(metrics, how='left').reset_index()
    grouped['items_in_order'] = grouped['items_in_order'].fillna(0).astype('int64')

    return grouped


def project(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:

    return df.reindex(columns=columns)


# =============================================================================
# END OF SCRIPT
# =============================================================================
