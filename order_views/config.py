# =============================================================================
# PIPELINE CONFIGURATION
# =============================================================================
# - Declare the fixed source schema: files, keys, roles and column types
# - Resolve run settings from the environment
# - Single source of truth for every stage of the view pipeline


import os


# ------------------------------------------------------------
# RUN SETTINGS
# ------------------------------------------------------------

RAW_DATA_BASE_PATH = os.getenv('RAW_DATA_BASE_PATH', 'data/raw')
VIEWS_OUTPUT_PATH = os.getenv('VIEWS_OUTPUT_PATH', 'data/views')
VIEW_PARTITIONS = int(os.getenv('VIEW_PARTITIONS', '1'))
VALIDATE_STRICT = os.getenv('VALIDATE_STRICT', 'false').lower() == 'true'

REJECTED_SAMPLE_LIMIT = 20
DELIVERED_STATUS = 'delivered'

ORDER_STATUSES = [
    'created',
    'approved',
    'invoiced',
    'processing',
    'shipped',
    'delivered',
    'canceled',
    'unavailable',
]

PAYMENT_TYPES = [
    'credit_card',
    'boleto',
    'voucher',
    'debit_card',
    'not_defined',
]


# ------------------------------------------------------------
# SOURCE SCHEMA
# ------------------------------------------------------------
# Column types: 'str' | 'int' | 'float' | 'timestamp'

TABLE_CONFIG = {
    'orders': {
        'file_prefix': 'olist_orders_dataset',
        'role': 'event_fact',
        'primary_key': ['order_id'],
        'required': True,
        'columns': {
            'order_id': 'str',
            'customer_id': 'str',
            'order_status': 'str',
            'order_purchase_timestamp': 'timestamp',
            'order_approved_at': 'timestamp',
            'order_delivered_carrier_date': 'timestamp',
            'order_delivered_customer_date': 'timestamp',
            'order_estimated_delivery_date': 'timestamp',
        },
    },
    'order_items': {
        'file_prefix': 'olist_order_items_dataset',
        'role': 'transaction_detail',
        'primary_key': ['order_id', 'order_item_id'],
        'required': True,
        'columns': {
            'order_id': 'str',
            'order_item_id': 'int',
            'product_id': 'str',
            'seller_id': 'str',
            'shipping_limit_date': 'timestamp',
            'price': 'float',
            'freight_value': 'float',
        },
    },
    'order_reviews': {
        'file_prefix': 'olist_order_reviews_dataset',
        'role': 'transaction_detail',
        'primary_key': ['review_id', 'order_id'],
        'required': True,
        'columns': {
            'review_id': 'str',
            'order_id': 'str',
            'review_score': 'int',
            'review_comment_title': 'str',
            'review_comment_message': 'str',
            'review_creation_date': 'timestamp',
            'review_answer_timestamp': 'timestamp',
        },
    },
    'order_payments': {
        'file_prefix': 'olist_order_payments_dataset',
        'role': 'transaction_detail',
        'primary_key': ['order_id', 'payment_sequential'],
        'required': False,
        'columns': {
            'order_id': 'str',
            'payment_sequential': 'int',
            'payment_type': 'str',
            'payment_installments': 'int',
            'payment_value': 'float',
        },
    },
    'customers': {
        'file_prefix': 'olist_customers_dataset',
        'role': 'entity_reference',
        'primary_key': ['customer_id'],
        'required': True,
        'columns': {
            'customer_id': 'str',
            'customer_unique_id': 'str',
            'customer_zip_code_prefix': 'str',
            'customer_city': 'str',
            'customer_state': 'str',
        },
    },
    'products': {
        'file_prefix': 'olist_products_dataset',
        'role': 'entity_reference',
        'primary_key': ['product_id'],
        'required': True,
        'columns': {
            'product_id': 'str',
            'product_category_name': 'str',
            'product_name_lenght': 'int',
            'product_description_lenght': 'int',
            'product_photos_qty': 'int',
            'product_weight_g': 'float',
            'product_length_cm': 'float',
            'product_height_cm': 'float',
            'product_width_cm': 'float',
        },
    },
    'sellers': {
        'file_prefix': 'olist_sellers_dataset',
        'role': 'entity_reference',
        'primary_key': ['seller_id'],
        'required': True,
        'columns': {
            'seller_id': 'str',
            'seller_zip_code_prefix': 'str',
            'seller_city': 'str',
            'seller_state': 'str',
        },
    },
    'geolocation': {
        'file_prefix': 'olist_geolocation_dataset',
        'role': 'lookup',
        'primary_key': [],
        'required': False,
        'columns': {
            'geolocation_zip_code_prefix': 'str',
            'geolocation_lat': 'float',
            'geolocation_lng': 'float',
            'geolocation_city': 'str',
            'geolocation_state': 'str',
        },
    },
    'category_translation': {
        'file_prefix': 'product_category_name_translation',
        'role': 'lookup',
        'primary_key': ['product_category_name'],
        'required': False,
        'columns': {
            'product_category_name': 'str',
            'product_category_name_english': 'str',
        },
    },
}

# Relations whose rows belong to exactly one order
ORDER_CHILD_RELATIONS = ['order_items', 'order_reviews', 'order_payments']

ZIP_PREFIX_COLUMNS = [
    'customer_zip_code_prefix',
    'seller_zip_code_prefix',
    'geolocation_zip_code_prefix',
]
ZIP_PREFIX_WIDTH = 5


# =============================================================================
# END OF SCRIPT
# =============================================================================
