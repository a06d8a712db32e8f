# =============================================================================
# VALIDATE RAW ORDER DATA
# =============================================================================
# - Check structural and semantic integrity of the loaded source relations
# - Surface data that would mislead downstream joins, aggregations, or timelines
# - Designed for deterministic execution before views are built


import sys
from typing import List, Optional

import pandas as pd

from order_views.config import ORDER_STATUSES, PAYMENT_TYPES, RAW_DATA_BASE_PATH, TABLE_CONFIG
from order_views.entity_store import EntityStore
from order_views.report import (
    Report,
    init_report,
    log_error,
    log_info,
    log_warning,
    summarize_report,
)


# ------------------------------------------------------------
# BASE VALIDATIONS (ALL TABLES)
# ------------------------------------------------------------

def run_base_validations(df: pd.DataFrame,
                         table_name: str,
                         primary_key: List[str],
                         report: Report
                         ) -> None:
    """
    Base structural validations.

    Stops if structure is broken.
    """

    if df.empty:
        if TABLE_CONFIG[table_name]['required']:
            log_error(f'{table_name}: dataset is empty', report)
        else:
            log_info(f'{table_name}: optional dataset is empty', report)

        return

    duplicate_columns = df.columns[df.columns.duplicated()].tolist()
    if duplicate_columns:
        log_error(
            f'{table_name}: duplicate column names detected: {duplicate_columns}',
            report
            )

    missing_pk_columns = [col for col in primary_key if col not in df.columns]
    if missing_pk_columns:
        log_error(
            f'{table_name}: missing primary key column(s): {missing_pk_columns}',
            report
            )

        return

    if not primary_key:

        return

    pk_null_count = int(df[primary_key].isnull().any(axis=1).sum())
    if pk_null_count > 0:
        log_warning(
            f'{table_name}: {pk_null_count} row(s) with null primary key values',
            report
            )

    duplicate_pk_count = int(df.duplicated(subset=primary_key).sum())
    if duplicate_pk_count > 0:
        log_warning(
            f'{table_name}: {duplicate_pk_count} duplicated primary key value(s)',
            report
            )


# ------------------------------------------------------------
# EVENT FACT VALIDATIONS
# ------------------------------------------------------------

def run_event_fact_validations(df: pd.DataFrame,
                               table_name: str,
                               report: Report
                               ) -> None:
    """
    Timeline validations on orders.

    Lifecycle timestamps are nullable; only present pairs are compared.
    """

    if df.empty:

        return

    missing_estimate = int(df['order_estimated_delivery_date'].isna().sum())
    if missing_estimate > 0:
        log_warning(
            f'{table_name}: {missing_estimate} record(s) without an estimated delivery date',
            report
            )

    purchase_ts = df['order_purchase_timestamp']
    approved_ts = df['order_approved_at']
    delivered_ts = df['order_delivered_customer_date']

    # Approval before Purchase
    invalid_approval = int((approved_ts < purchase_ts).sum())
    if invalid_approval > 0:
        log_warning(
            f'{table_name}: {invalid_approval} record(s) where approval precedes purchase',
            report
            )

    # Delivery before Purchase
    invalid_delivery = int((delivered_ts < purchase_ts).sum())
    if invalid_delivery > 0:
        log_warning(
            f'{table_name}: {invalid_delivery} record(s) where delivery precedes purchase',
            report
            )


# ------------------------------------------------------------
# TRANSACTION DETAIL VALIDATIONS
# ------------------------------------------------------------

def run_transaction_detail_validations(df: pd.DataFrame,
                                       table_name: str,
                                       report: Report
                                       ) -> None:
    """
    Transaction detail validations.

    Flags values that would corrupt sums and averages.
    """

    numeric_columns = df.select_dtypes(include=['number']).columns.tolist()

    for col in numeric_columns:
        negative_count = int((df[col] < 0).sum())
        if negative_count > 0:
            log_warning(
                f'{table_name}: {negative_count} negative value(s) in numeric column `{col}`',
                report
                )


# ------------------------------------------------------------
# ENUMERATION VALIDATIONS
# ------------------------------------------------------------

# (relation, column, known values)
ENUMERATIONS = [
    ('orders', 'order_status', ORDER_STATUSES),
    ('order_payments', 'payment_type', PAYMENT_TYPES),
]


def run_enumeration_validations(store: EntityStore, report: Report) -> None:
    """
    Unknown values are kept; views filter on exact strings only.
    """

    for relation, column, known in ENUMERATIONS:
        values = store.relation(relation)[column]
        unknown = values.notna() & ~values.isin(known)
        if unknown.any():
            log_warning(
                f'{relation}: {int(unknown.sum())} record(s) with unknown `{column}` '
                f'value(s): {sorted(values[unknown].unique())}',
                report
                )


# ------------------------------------------------------------
# CROSS-TABLE VALIDATIONS
# ------------------------------------------------------------

# (child relation, foreign key, parent relation, parent key)
FOREIGN_KEYS = [
    ('order_items', 'order_id', 'orders', 'order_id'),
    ('order_payments', 'order_id', 'orders', 'order_id'),
    ('order_reviews', 'order_id', 'orders', 'order_id'),
    ('orders', 'customer_id', 'customers', 'customer_id'),
    ('order_items', 'product_id', 'products', 'product_id'),
    ('order_items', 'seller_id', 'sellers', 'seller_id'),
]


def run_cross_table_validations(store: EntityStore, report: Report) -> None:
    """
    Cross-table validations.

    Orphans survive outer joins with nulls; they are reported, not removed.
    """

    for child, fk, parent, pk in FOREIGN_KEYS:
        child_df = store.relation(child)
        parent_keys = set(store.relation(parent)[pk].dropna())

        orphans = child_df[fk].notna() & ~child_df[fk].isin(parent_keys)
        if orphans.any():
            log_warning(
                f'{child}: {int(orphans.sum())} orphan record(s) referencing non-existent {pk}',
                report
                )


# ------------------------------------------------------------
# ENTRY POINTS
# ------------------------------------------------------------

def validate_store(store: EntityStore, report: Optional[Report] = None) -> Report:
    if report is None:
        report = init_report()

    for table_name, config in TABLE_CONFIG.items():
        df = store.relation(table_name)
        run_base_validations(df, table_name, config['primary_key'], report)

        if config['role'] == 'event_fact':
            run_event_fact_validations(df, table_name, report)

        elif config['role'] == 'transaction_detail':
            run_transaction_detail_validations(df, table_name, report)

    run_enumeration_validations(store, report)
    run_cross_table_validations(store, report)

    return report


def main() -> None:
    report = init_report()
    store = EntityStore.from_csv_dir(RAW_DATA_BASE_PATH, report)
    validate_store(store, report)

    for line in summarize_report(report):
        print(line)

    if report['errors']:
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
