import pytest

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


class TestPlanJoins:
    """
    Join ordering, keys and policies for the fixed order schema.
    """

    def test_keys_and_join_types(self):
        plan = plan_joins('orders', [
            JoinSpec('order_items', ONE_TO_MANY, INNER),
            JoinSpec('products', MANY_TO_ONE, OUTER),
            JoinSpec('customers', ONE_TO_ONE, OUTER),
        ])

        items, products, customers = plan.steps

        assert (items.left_key, items.right_key, items.how) == ('order_id', 'order_id', 'inner')
        assert (products.left_relation, products.left_key, products.how) == ('order_items', 'product_id', 'left')
        assert (customers.left_relation, customers.left_key) == ('orders', 'customer_id')
        assert plan.fans_out

    def test_dependent_join_is_moved_after_its_parent(self):
        plan = plan_joins('orders', [
            JoinSpec('sellers', MANY_TO_ONE, OUTER),
            JoinSpec('order_items', ONE_TO_MANY, INNER),
        ])

        assert [step.relation for step in plan.steps] == ['order_items', 'sellers']
        assert plan.relations == ['orders', 'order_items', 'sellers']

    def test_caller_order_is_kept_otherwise(self):
        plan = plan_joins('orders', [
            JoinSpec('order_reviews', ONE_TO_MANY, INNER),
            JoinSpec('order_items', ONE_TO_MANY, INNER),
            JoinSpec('customers', ONE_TO_ONE, OUTER),
        ])

        assert [step.relation for step in plan.steps] == ['order_reviews', 'order_items', 'customers']

    def test_lookup_only_plan_does_not_fan_out(self):
        plan = plan_joins('orders', [JoinSpec('customers', ONE_TO_ONE, OUTER)])

        assert not plan.fans_out

    def test_geolocation_joins_are_resolved_and_aliased(self):
        plan = plan_joins('orders', [
            JoinSpec('customers', ONE_TO_ONE, OUTER),
            JoinSpec('geolocation', ONE_TO_MANY, OUTER, left='customers', resolve='first'),
        ])

        geo = plan.steps[1]

        assert geo.left_key == 'customer_zip_code_prefix'
        assert geo.right_key == 'geolocation_zip_code_prefix'
        assert geo.alias == 'customer'
        assert not geo.fans_out


class TestPlanJoinsConfigurationErrors:

    def test_missing_cardinality(self):
        with pytest.raises(ConfigurationError, match='no cardinality'):
            plan_joins('orders', [JoinSpec('order_items', optionality=INNER)])

    def test_unknown_cardinality(self):
        with pytest.raises(ConfigurationError):
            plan_joins('orders', [JoinSpec('order_items', 'M:N', INNER)])

    def test_cardinality_contradicting_schema(self):
        with pytest.raises(ConfigurationError, match='contradicts'):
            plan_joins('orders', [JoinSpec('order_items', ONE_TO_ONE, INNER)])

    def test_unknown_optionality(self):
        with pytest.raises(ConfigurationError):
            plan_joins('orders', [JoinSpec('customers', ONE_TO_ONE, 'full')])

    def test_unknown_relation(self):
        with pytest.raises(ConfigurationError):
            plan_joins('orders', [JoinSpec('shipments', ONE_TO_MANY, OUTER)])

    def test_unknown_target(self):
        with pytest.raises(ConfigurationError):
            plan_joins('shipments', [])

    def test_unreachable_left_relation(self):
        with pytest.raises(ConfigurationError, match='unreachable'):
            plan_joins('orders', [JoinSpec('products', MANY_TO_ONE, OUTER)])

    def test_relation_joined_twice(self):
        with pytest.raises(ConfigurationError):
            plan_joins('orders', [
                JoinSpec('customers', ONE_TO_ONE, OUTER),
                JoinSpec('customers', ONE_TO_ONE, OUTER),
            ])

    def test_unresolved_geolocation(self):
        with pytest.raises(ConfigurationError, match='resolved'):
            plan_joins('orders', [
                JoinSpec('customers', ONE_TO_ONE, OUTER),
                JoinSpec('geolocation', ONE_TO_MANY, OUTER, left='customers'),
            ])

    def test_resolution_on_unique_relation(self):
        with pytest.raises(ConfigurationError):
            plan_joins('orders', [JoinSpec('customers', ONE_TO_ONE, OUTER, resolve='first')])
