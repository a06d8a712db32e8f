import pandas as pd

from order_views.entity_store import EntityStore
from order_views.validate_raw_data import (
    run_base_validations,
    run_cross_table_validations,
    run_enumeration_validations,
    run_event_fact_validations,
    run_transaction_detail_validations,
    validate_store,
)


class TestBaseValidations:

    def test_empty_required_table_is_error(self, report):
        run_base_validations(pd.DataFrame(), 'orders', ['order_id'], report)

        assert report['errors'] == ['orders: dataset is empty']

    def test_empty_optional_table_is_info(self, report):
        run_base_validations(pd.DataFrame(), 'geolocation', [], report)

        assert report['errors'] == []
        assert report['info'] == ['geolocation: optional dataset is empty']

    def test_missing_primary_key_column(self, report):
        df = pd.DataFrame({'seller_city': ['x']})

        run_base_validations(df, 'sellers', ['seller_id'], report)

        assert "missing primary key column(s): ['seller_id']" in report['errors'][0]

    def test_duplicated_primary_key_is_warning(self, report):
        df = pd.DataFrame({'seller_id': ['s1', 's1', None]})

        run_base_validations(df, 'sellers', ['seller_id'], report)

        assert report['errors'] == []
        assert any('1 row(s) with null primary key' in w for w in report['warnings'])
        assert any('duplicated primary key' in w for w in report['warnings'])


class TestEventFactValidations:

    def test_delivery_before_purchase(self, report):
        df = pd.DataFrame({
            'order_purchase_timestamp': pd.to_datetime(['2023-01-05', '2023-01-01']),
            'order_approved_at': pd.to_datetime(['2023-01-06', None]),
            'order_delivered_customer_date': pd.to_datetime(['2023-01-02', None]),
            'order_estimated_delivery_date': pd.to_datetime(['2023-01-10', '2023-01-10']),
        })

        run_event_fact_validations(df, 'orders', report)

        assert report['warnings'] == ['orders: 1 record(s) where delivery precedes purchase']


class TestTransactionDetailValidations:

    def test_negative_price(self, report):
        df = pd.DataFrame({'price': [10.0, -1.0], 'freight_value': [1.0, 1.0]})

        run_transaction_detail_validations(df, 'order_items', report)

        assert report['warnings'] == ['order_items: 1 negative value(s) in numeric column `price`']


class TestCrossTableValidations:

    def test_orphans_are_reported(self, store, report):
        run_cross_table_validations(store, report)

        assert any(w.startswith('orders: 1 orphan') for w in report['warnings'])
        assert any(w.startswith('order_items: 1 orphan record(s) referencing non-existent product_id') for w in report['warnings'])


class TestValidateStore:

    def test_fixture_store_has_no_errors(self, store):
        report = validate_store(store)

        assert report['errors'] == []

    def test_empty_store_has_errors(self):
        report = validate_store(EntityStore.from_frames({}))

        assert 'orders: dataset is empty' in report['errors']


class TestEnumerationValidations:

    def test_unknown_status_is_warning(self, frames, report):
        frames['orders'].loc[2, 'order_status'] = 'lost_in_transit'
        store = EntityStore.from_frames(frames)

        run_enumeration_validations(store, report)

        assert report['warnings'] == [
            "orders: 1 record(s) with unknown `order_status` value(s): ['lost_in_transit']"
        ]

    def test_fixture_values_are_known(self, store, report):
        run_enumeration_validations(store, report)

        assert report['warnings'] == []
