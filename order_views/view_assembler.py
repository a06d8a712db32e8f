# =============================================================================
# VIEW ASSEMBLER
# =============================================================================
# - Compose planner, expander and aggregator into fixed analytical views
# - Each view is an explicit pipeline: filter -> join -> expand -> group -> project
# - Output columns are locked per view; no metadata columns are added


from typing import Callable, Dict, Iterator, List, Optional

import pandas as pd

from order_views.aggregator import (
    add_delivery_metrics,
    add_item_value,
    add_same_state_flag,
    aggregate_by_order,
    project,
)
from order_views.config import DELIVERED_STATUS
from order_views.entity_store import EntityStore
from order_views.errors import ConfigurationError
from order_views.join_planner import (
    INNER,
    MANY_TO_ONE,
    ONE_TO_MANY,
    ONE_TO_ONE,
    OUTER,
    JoinSpec,
    plan_joins,
)
from order_views.report import Report, log_info
from order_views.row_expander import expand_rows


# ------------------------------------------------------------
# OUTPUT SCHEMAS
# ------------------------------------------------------------

ORDERS_WITH_REVIEWS_COLUMNS = [
    'order_id',
    'customer_id',
    'order_status',
    'order_purchase_timestamp',
    'review_id',
    'review_score',
    'review_comment_title',
    'review_comment_message',
    'review_creation_date',
]

FULL_DENORMALIZED_COLUMNS = [
    'order_id',
    'order_status',
    'order_purchase_timestamp',
    'order_delivered_customer_date',
    'order_estimated_delivery_date',
    'order_item_id',
    'product_id',
    'seller_id',
    'price',
    'freight_value',
    'total_item_value',
    'product_category_name',
    'product_weight_g',
    'seller_zip_code_prefix',
    'seller_city',
    'seller_state',
    'customer_id',
    'customer_zip_code_prefix',
    'customer_city',
    'customer_state',
]

SATISFACTION_ANALYSIS_COLUMNS = [
    'order_id',
    'order_status',
    'order_purchase_timestamp',
    'order_approved_at',
    'order_delivered_carrier_date',
    'order_delivered_customer_date',
    'order_estimated_delivery_date',
    'review_score',
    'review_creation_date',
    'delivery_delay_days',
    'actual_delivery_days',
    'items_in_order',
    'total_price',
    'total_freight',
    'total_order_value',
    'avg_product_weight',
    'product_category_name',
    'customer_state',
    'seller_state',
    'customer_city',
    'seller_city',
    'same_state_delivery',
]

# Order-level fields carried through the grouping, first value wins
SATISFACTION_FIRST_VALUE_COLUMNS = [
    'order_status',
    'order_purchase_timestamp',
    'order_approved_at',
    'order_delivered_carrier_date',
    'order_delivered_customer_date',
    'order_estimated_delivery_date',
    'review_score',
    'review_creation_date',
    'delivery_delay_days',
    'actual_delivery_days',
    'product_category_name',
    'customer_state',
    'seller_state',
    'customer_city',
    'seller_city',
    'same_state_delivery',
]

ORDER_PAYMENTS_SUMMARY_COLUMNS = [
    'order_id',
    'payment_count',
    'payment_types',
    'max_installments',
    'total_payment_value',
]

ORDER_ITEM_GEOGRAPHY_COLUMNS = [
    'order_id',
    'order_item_id',
    'product_id',
    'product_category_name',
    'product_category_name_english',
    'customer_state',
    'customer_geolocation_lat',
    'customer_geolocation_lng',
    'seller_state',
    'seller_geolocation_lat',
    'seller_geolocation_lng',
]


# ------------------------------------------------------------
# JOIN PLANS
# ------------------------------------------------------------

ORDERS_WITH_REVIEWS_PLAN = plan_joins('orders', [
    JoinSpec('order_reviews', ONE_TO_MANY, OUTER),
])

FULL_DENORMALIZED_PLAN = plan_joins('orders', [
    JoinSpec('order_items', ONE_TO_MANY, INNER),
    JoinSpec('products', MANY_TO_ONE, OUTER),
    JoinSpec('sellers', MANY_TO_ONE, OUTER),
    JoinSpec('customers', ONE_TO_ONE, OUTER),
])

SATISFACTION_ANALYSIS_PLAN = plan_joins('orders', [
    JoinSpec('order_reviews', ONE_TO_MANY, INNER),
    JoinSpec('order_items', ONE_TO_MANY, INNER),
    JoinSpec('products', MANY_TO_ONE, OUTER),
    JoinSpec('customers', ONE_TO_ONE, OUTER),
    JoinSpec('sellers', MANY_TO_ONE, OUTER),
])

ORDER_PAYMENTS_SUMMARY_PLAN = plan_joins('orders', [
    JoinSpec('order_payments', ONE_TO_MANY, INNER),
])

ORDER_ITEM_GEOGRAPHY_PLAN = plan_joins('orders', [
    JoinSpec('order_items', ONE_TO_MANY, INNER),
    JoinSpec('products', MANY_TO_ONE, OUTER),
    JoinSpec('category_translation', MANY_TO_ONE, OUTER),
    JoinSpec('customers', ONE_TO_ONE, OUTER),
    JoinSpec('sellers', MANY_TO_ONE, OUTER),
    JoinSpec('geolocation', ONE_TO_MANY, OUTER, left='customers', resolve='mean'),
    JoinSpec('geolocation', ONE_TO_MANY, OUTER, left='sellers', resolve='mean'),
])


# ------------------------------------------------------------
# FILTERS
# ------------------------------------------------------------

def delivered_orders(orders: pd.DataFrame) -> pd.DataFrame:
    """
    Delivered status with a known delivery date.

    Applied to orders before any inner join.
    """

    delivered = (
        (orders['order_status'] == DELIVERED_STATUS)
        & orders['order_delivered_customer_date'].notna()
    )

    return orders[delivered]


# ------------------------------------------------------------
# VIEW BUILDERS
# ------------------------------------------------------------

def orders_with_reviews(store: EntityStore,
                        report: Optional[Report] = None
                        ) -> pd.DataFrame:
    """
    One row per (order, review); orders without a review keep one
    row with null review fields.
    """

    rows = expand_rows(store, ORDERS_WITH_REVIEWS_PLAN, report=report)

    return project(rows, ORDERS_WITH_REVIEWS_COLUMNS)


def full_denormalized(store: EntityStore,
                      report: Optional[Report] = None
                      ) -> pd.DataFrame:
    """
    One row per order item, with product, seller and customer attributes.
    """

    rows = expand_rows(store, FULL_DENORMALIZED_PLAN, report=report)
    rows = add_item_value(rows)

    return project(rows, FULL_DENORMALIZED_COLUMNS)


def satisfaction_analysis(store: EntityStore,
                          report: Optional[Report] = None
                          ) -> pd.DataFrame:
    """
    One row per delivered, reviewed order with delivery and value metrics.
    """

    rows = expand_rows(
        store, SATISFACTION_ANALYSIS_PLAN, base_filter=delivered_orders, report=report
        )
    rows = add_delivery_metrics(rows)
    rows = add_same_state_flag(rows)

    grouped = aggregate_by_order(rows, SATISFACTION_FIRST_VALUE_COLUMNS, report)

    return project(grouped, SATISFACTION_ANALYSIS_COLUMNS)


def order_payments_summary(store: EntityStore,
                           report: Optional[Report] = None
                           ) -> pd.DataFrame:
    rows = expand_rows(store, ORDER_PAYMENTS_SUMMARY_PLAN, report=report)

    if rows.empty:

        return project(rows, ORDER_PAYMENTS_SUMMARY_COLUMNS)

    summary = rows.groupby('order_id', sort=False).agg(
        payment_count=('payment_sequential', 'size'),
        payment_types=('payment_type', lambda s: '|'.join(sorted(s.dropna().unique()))),
        max_installments=('payment_installments', 'max'),
        total_payment_value=('payment_value', 'sum'),
    )

    return project(summary.reset_index(), ORDER_PAYMENTS_SUMMARY_COLUMNS)


def order_item_geography(store: EntityStore,
                         report: Optional[Report] = None
                         ) -> pd.DataFrame:
    rows = expand_rows(store, ORDER_ITEM_GEOGRAPHY_PLAN, report=report)

    return project(rows, ORDER_ITEM_GEOGRAPHY_COLUMNS)


# ------------------------------------------------------------
# ENTRY POINTS
# ------------------------------------------------------------

ViewBuilder = Callable[[EntityStore, Optional[Report]], pd.DataFrame]

VIEW_BUILDERS: Dict[str, ViewBuilder] = {
    'orders_with_reviews': orders_with_reviews,
    'full_denormalized': full_denormalized,
    'satisfaction_analysis': satisfaction_analysis,
    'order_payments_summary': order_payments_summary,
    'order_item_geography': order_item_geography,
}


def get_builder(name: str) -> ViewBuilder:
    if name not in VIEW_BUILDERS:
        raise ConfigurationError(f'unknown view `{name}`, use one of {list(VIEW_BUILDERS)}')

    return VIEW_BUILDERS[name]


def iter_view(name: str,
              store: EntityStore,
              partitions: int = 1,
              report: Optional[Report] = None
              ) -> Iterator[pd.DataFrame]:
    """
    Build a view lazily, one chunk per order-id partition.

    Chunks are independent; row order across chunks is unspecified.
    """

    builder = get_builder(name)

    for part in store.partition(partitions):
        yield builder(part, report)


def build_view(name: str,
               store: EntityStore,
               partitions: int = 1,
               report: Optional[Report] = None
               ) -> pd.DataFrame:
    chunks: List[pd.DataFrame] = list(iter_view(name, store, partitions, report))

    non_empty = [c for c in chunks if not c.empty] or chunks[:1]
    view = pd.concat(non_empty, ignore_index=True)

    log_info(f'{name}: built {len(view)} row(s) from {len(chunks)} partition(s)', report)

    return view


# =============================================================================
# END OF SCRIPT
# =============================================================================
