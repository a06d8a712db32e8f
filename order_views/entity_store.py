# =============================================================================
# ENTITY STORE
# =============================================================================
# - Hold the normalized source relations as typed, read-only DataFrames
# - Coerce raw values to the declared schema, skipping malformed records
# - Shard the store into independent order-id partitions for streaming views


import os
import glob
from typing import Callable, Dict, Hashable, List, Optional

import pandas as pd

from order_views.config import (
    ORDER_CHILD_RELATIONS,
    TABLE_CONFIG,
    ZIP_PREFIX_COLUMNS,
    ZIP_PREFIX_WIDTH,
)
from order_views.errors import ConfigurationError, MalformedRecordError
from order_views.report import (
    Report,
    log_error,
    log_info,
    log_rejected,
    log_warning,
)


# ------------------------------------------------------------
# TYPE COERCION
# ------------------------------------------------------------

def _blank_to_null(values: pd.Series) -> pd.Series:
    # CSV text arrives as object or as the pandas string dtype
    if not (pd.api.types.is_object_dtype(values) or pd.api.types.is_string_dtype(values)):

        return values

    values = values.astype(object)
    blank = values.map(lambda v: isinstance(v, str) and not v.strip()).astype(bool)

    return values.mask(blank | values.isna())


def _coerce_column(values: pd.Series, kind: str, column: str) -> pd.Series:
    if kind == 'str':
        coerced = values.map(lambda v: v if pd.isna(v) else str(v).strip())
        if column in ZIP_PREFIX_COLUMNS:
            coerced = coerced.map(
                lambda v: v if pd.isna(v) else v.split('.')[0].zfill(ZIP_PREFIX_WIDTH)
                )

        return coerced.astype(object)

    if kind == 'int':
        numeric = pd.to_numeric(values, errors='coerce').astype(float)
        numeric = numeric.where(numeric % 1 == 0)

        return numeric.astype('Int64')

    if kind == 'float':

        return pd.to_numeric(values, errors='coerce').astype(float)

    if kind == 'timestamp':
        if pd.api.types.is_datetime64_any_dtype(values):

            return values

        return pd.to_datetime(values, errors='coerce', format='mixed')

    raise ConfigurationError(f'unknown column type `{kind}` for `{column}`')


def _record_key(row: pd.Series, primary_key: List[str]) -> str:
    if not primary_key:

        return f'#{row.name}'

    return '/'.join(str(row[col]) for col in primary_key)


def coerce_relation(df: pd.DataFrame,
                    relation: str,
                    report: Optional[Report] = None,
                    strict: bool = False
                    ) -> pd.DataFrame:
    """
    Project a raw frame onto the declared schema of `relation`.

    A non-null value that cannot be coerced rejects its whole record, and
    so does a null primary-key column. Rejected records are counted in the
    report; strict mode raises instead.
    """

    config = TABLE_CONFIG[relation]
    columns = config['columns']
    primary_key = config['primary_key']

    raw = df.reset_index(drop=True)
    for col in columns:
        if col not in raw.columns:
            raw[col] = None

    raw = raw[list(columns)]
    coerced = pd.DataFrame(index=raw.index)
    rejected = pd.Series(False, index=raw.index)
    failed_column = pd.Series(None, index=raw.index, dtype=object)

    for col, kind in columns.items():
        values = _blank_to_null(raw[col])
        coerced[col] = _coerce_column(values, kind, col)

        failed = values.notna() & coerced[col].isna() & ~rejected
        failed_column[failed] = col
        rejected |= failed

    # Key columns identify the record in every join and item count
    null_key = pd.Series(False, index=raw.index)
    for col in primary_key:
        missing = coerced[col].isna() & ~rejected & ~null_key
        failed_column[missing] = col
        null_key |= missing

    rejected |= null_key

    for idx in raw.index[rejected.to_numpy()]:
        col = failed_column[idx]
        reason = 'null primary key' if null_key[idx] else 'unparsable'
        error = MalformedRecordError(
            relation, _record_key(raw.loc[idx], primary_key), col, raw.at[idx, col], reason
            )
        if strict:
            raise error

        log_rejected(error, report)

    if rejected.any():
        log_warning(f'{relation}: skipped {int(rejected.sum())} malformed record(s)', report)

    return coerced[~rejected].reset_index(drop=True)


def empty_relation(relation: str) -> pd.DataFrame:

    return coerce_relation(pd.DataFrame(), relation)


# ------------------------------------------------------------
# STORE
# ------------------------------------------------------------

class EntityStore:
    """
    Immutable snapshot of the source relations.

    Frames handed out by `relation()` are shared; callers derive new
    frames and never write into them.
    """

    def __init__(self, tables: Dict[str, pd.DataFrame],
                 shared_lookups: Optional[Dict[Hashable, pd.DataFrame]] = None):
        unknown = sorted(set(tables) - set(TABLE_CONFIG))
        if unknown:
            raise ConfigurationError(f'unknown relation(s): {unknown}')

        self._tables = {
            name: tables[name] if name in tables else empty_relation(name)
            for name in TABLE_CONFIG
        }
        self._shared_lookups = shared_lookups

    @classmethod
    def from_frames(cls,
                    frames: Dict[str, pd.DataFrame],
                    report: Optional[Report] = None,
                    strict: bool = False
                    ) -> 'EntityStore':
        tables = {}
        for name, df in frames.items():
            if name not in TABLE_CONFIG:
                raise ConfigurationError(f'unknown relation: {name}')

            tables[name] = coerce_relation(df, name, report, strict)

        return cls(tables)

    @classmethod
    def from_csv_dir(cls,
                     path: str,
                     report: Optional[Report] = None,
                     strict: bool = False
                     ) -> 'EntityStore':
        """
        Load every relation from `<file_prefix>*.csv` files under `path`.
        """

        frames = {}
        for name, config in TABLE_CONFIG.items():
            df = load_logical_table(path, name, config['file_prefix'], report)
            if df is None:
                if config['required']:
                    log_error(f'{name}: required relation is missing', report)
                else:
                    log_info(f'{name}: optional relation not found, using empty table', report)

                continue

            frames[name] = df

        return cls.from_frames(frames, report, strict)

    @property
    def relation_names(self) -> List[str]:

        return list(self._tables)

    def relation(self, name: str) -> pd.DataFrame:
        if name not in self._tables:
            raise ConfigurationError(f'unknown relation: {name}')

        return self._tables[name]

    def lookup(self, name: str, key: str, value) -> pd.DataFrame:
        df = self.relation(name)

        return df[df[key] == value]

    def with_relation(self, name: str, df: pd.DataFrame) -> 'EntityStore':
        tables = dict(self._tables)
        tables[name] = df

        return EntityStore(tables)

    def partition(self, partitions: int) -> List['EntityStore']:
        """
        Split by a stable hash of order_id.

        Order children follow their order; reference relations are shared,
        and so are the lookup frames built from them.
        """

        if partitions < 1:
            raise ConfigurationError(f'partition count must be >= 1, got {partitions}')

        if partitions == 1:

            return [self]

        orders = self._tables['orders']
        shard = pd.util.hash_pandas_object(orders['order_id'], index=False) % partitions

        shared_lookups: Dict[Hashable, pd.DataFrame] = {}
        stores = []
        for i in range(partitions):
            shard_orders = orders[(shard == i).to_numpy()]
            order_ids = set(shard_orders['order_id'])
            tables = dict(self._tables)
            tables['orders'] = shard_orders
            for child in ORDER_CHILD_RELATIONS:
                df = self._tables[child]
                tables[child] = df[df['order_id'].isin(order_ids)]

            stores.append(EntityStore(tables, shared_lookups))

        return stores

    # --------------------------------------------------------
    # RESOLVED LOOKUPS
    # --------------------------------------------------------

    def shared_lookup(self, key: Hashable, build: Callable[[], pd.DataFrame]) -> pd.DataFrame:
        """
        Build a reference-derived frame once per partition set.

        Outside a partition set every call builds afresh.
        """

        if self._shared_lookups is None:

            return build()

        if key not in self._shared_lookups:
            self._shared_lookups[key] = build()

        return self._shared_lookups[key]

    def geolocation_lookup(self, how: str = 'first') -> pd.DataFrame:
        """
        One row per zip prefix: first sample, or mean coordinates.
        """

        geo = self._tables['geolocation']
        key = 'geolocation_zip_code_prefix'

        if how not in ('first', 'mean'):
            raise ConfigurationError(f'unknown geolocation aggregation `{how}`, use first or mean')

        if how == 'first' or geo.empty:

            return geo.drop_duplicates(subset=[key], keep='first').reset_index(drop=True)

        return (
            geo.groupby(key, sort=False)
            .agg(
                geolocation_lat=('geolocation_lat', 'mean'),
                geolocation_lng=('geolocation_lng', 'mean'),
                geolocation_city=('geolocation_city', 'first'),
                geolocation_state=('geolocation_state', 'first'),
            )
            .reset_index()
        )


# ------------------------------------------------------------
# INPUT HELPERS
# ------------------------------------------------------------

def load_csv_file(csv_path: str, table_name: str,
                  report: Optional[Report]
                  ) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(csv_path, dtype=str, keep_default_na=True)
        log_info(f'Loaded {table_name} file: {os.path.basename(csv_path)} ({len(df)} rows)', report)

        return df

    except (OSError, ValueError, pd.errors.ParserError) as e:
        log_error(f'Failed to load {table_name} file {csv_path}: {e}', report)

        return None


def load_logical_table(path: str,
                       table_name: str,
                       file_prefix: str,
                       report: Optional[Report]
                       ) -> Optional[pd.DataFrame]:
    """
    Load and concatenate all CSV files belonging to a logical table.
    Files are identified by filename prefix: <file_prefix>*.csv
    """

    pattern = os.path.join(path, f'{file_prefix}*.csv')
    csv_files = sorted(glob.glob(pattern))

    if not csv_files:

        return None

    dfs = []
    for csv_path in csv_files:
        df = load_csv_file(csv_path, table_name, report)
        if df is not None:
            dfs.append(df)

    if not dfs:
        log_error(f'{table_name}: all matching files failed to load', report)

        return None

    combined_df = pd.concat(dfs, ignore_index=True)
    log_info(f'{table_name}: combined {len(csv_files)} file(s) into '
             f'{len(combined_df)} rows',
             report)

    return combined_df


# =============================================================================
# END OF SCRIPT
# =============================================================================
