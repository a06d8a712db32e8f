import pandas as pd
import pytest

from order_views.config import TABLE_CONFIG
from order_views.entity_store import EntityStore
from order_views.report import init_report


# ------------------------------------------------------------
# RAW FIXTURE DATA (values as they arrive from CSV)
# ------------------------------------------------------------

ORDERS = [
    # delivered two days late, two items, one review
    ['o1', 'c1', 'delivered', '2023-01-01 00:00:00', '2023-01-01 10:00:00',
     '2023-01-03 00:00:00', '2023-01-12 00:00:00', '2023-01-10 00:00:00'],
    # delivered, one item, two reviews
    ['o2', 'c2', 'delivered', '2023-02-01 00:00:00', '2023-02-01 08:00:00',
     '2023-02-02 00:00:00', '2023-02-05 12:00:00', '2023-02-10 00:00:00'],
    # not delivered yet, no review
    ['o3', 'c1', 'shipped', '2023-03-01 00:00:00', '2023-03-01 09:00:00',
     '2023-03-02 00:00:00', None, '2023-03-15 00:00:00'],
    # delivered status without a delivery date
    ['o4', 'c1', 'delivered', '2023-04-01 00:00:00', None,
     None, None, '2023-04-20 00:00:00'],
    # customer missing from customers
    ['o5', 'c9', 'delivered', '2023-05-01 00:00:00', '2023-05-01 10:00:00',
     '2023-05-02 00:00:00', '2023-05-08 00:00:00', '2023-05-10 00:00:00'],
]

ORDER_ITEMS = [
    ['o1', '1', 'p1', 's1', '2023-01-05 00:00:00', '10.0', '2.0'],
    ['o1', '2', 'p2', 's1', '2023-01-05 00:00:00', '20.0', '3.0'],
    ['o2', '1', 'p2', 's1', '2023-02-04 00:00:00', '15.0', '1.5'],
    ['o3', '1', 'p1', 's2', '2023-03-04 00:00:00', '50.0', '5.0'],
    ['o4', '1', 'p1', 's1', '2023-04-04 00:00:00', '8.0', '1.0'],
    ['o5', '1', 'p9', 's2', '2023-05-04 00:00:00', '12.0', '4.0'],
]

ORDER_REVIEWS = [
    ['r1', 'o1', '5', None, 'great', '2023-01-13 00:00:00', '2023-01-14 00:00:00'],
    ['r2', 'o2', '4', 'ok', None, '2023-02-06 00:00:00', '2023-02-07 00:00:00'],
    ['r3', 'o2', '2', None, 'changed my mind', '2023-02-08 00:00:00', '2023-02-09 00:00:00'],
    ['r4', 'o4', '1', None, None, '2023-04-21 00:00:00', '2023-04-22 00:00:00'],
    ['r5', 'o5', '3', None, None, '2023-05-09 00:00:00', '2023-05-10 00:00:00'],
]

ORDER_PAYMENTS = [
    ['o1', '1', 'credit_card', '3', '30.0'],
    ['o1', '2', 'voucher', '1', '5.0'],
    ['o2', '1', 'boleto', '1', '16.5'],
]

CUSTOMERS = [
    ['c1', 'u1', '1310', 'sao paulo', 'SP'],
    ['c2', 'u2', '20040', 'rio de janeiro', 'RJ'],
]

PRODUCTS = [
    ['p1', 'beleza_saude', '40', '300', '2', '500.0', '20', '10', '15'],
    ['p2', 'categoria_sem_traducao', '35', '250', '1', None, None, None, None],
]

SELLERS = [
    ['s1', '01001', 'sao paulo', 'SP'],
    ['s2', '20040', 'rio de janeiro', 'RJ'],
]

GEOLOCATION = [
    ['01310', '-23.0', '-46.0', 'sao paulo', 'SP'],
    ['01310', '-24.0', '-47.0', 'sao paulo', 'SP'],
    ['01001', '-23.5', '-46.6', 'sao paulo', 'SP'],
]

CATEGORY_TRANSLATION = [
    ['beleza_saude', 'health_beauty'],
]


def _frame(rows, relation):
    return pd.DataFrame(rows, columns=list(TABLE_CONFIG[relation]['columns']))


def raw_frames():

    return {
        'orders': _frame(ORDERS, 'orders'),
        'order_items': _frame(ORDER_ITEMS, 'order_items'),
        'order_reviews': _frame(ORDER_REVIEWS, 'order_reviews'),
        'order_payments': _frame(ORDER_PAYMENTS, 'order_payments'),
        'customers': _frame(CUSTOMERS, 'customers'),
        'products': _frame(PRODUCTS, 'products'),
        'sellers': _frame(SELLERS, 'sellers'),
        'geolocation': _frame(GEOLOCATION, 'geolocation'),
        'category_translation': _frame(CATEGORY_TRANSLATION, 'category_translation'),
    }


# ------------------------------------------------------------
# FIXTURES
# ------------------------------------------------------------

@pytest.fixture
def report():

    return init_report()


@pytest.fixture
def frames():

    return raw_frames()


@pytest.fixture
def store(frames):

    return EntityStore.from_frames(frames)


@pytest.fixture
def raw_csv_dir(tmp_path, frames):
    for name, df in frames.items():
        df.to_csv(tmp_path / f'{TABLE_CONFIG[name]["file_prefix"]}.csv', index=False)

    return tmp_path
