# =============================================================================
# BUILD ANALYTICAL VIEWS
# =============================================================================
# - Load raw relations, validate them, and build the requested views
# - Write one CSV per view; never overwrite raw data
# - Exit non-zero when loading or validation reports errors


import os
import sys
from typing import List, Optional

from order_views import config
from order_views.entity_store import EntityStore
from order_views.errors import ConfigurationError, MalformedRecordError
from order_views.report import Report, init_report, log_error, log_info, summarize_report
from order_views.validate_raw_data import validate_store
from order_views.view_assembler import VIEW_BUILDERS, iter_view


# ------------------------------------------------------------
# OUTPUT HELPER
# ------------------------------------------------------------

def write_view(name: str,
               store: EntityStore,
               output_path: str,
               partitions: int,
               report: Report
               ) -> str:
    """
    Stream a view to `<output_path>/<name>.csv`, one partition at a time.
    """

    os.makedirs(output_path, exist_ok=True)
    csv_path = os.path.join(output_path, f'{name}.csv')

    rows = 0
    for i, chunk in enumerate(iter_view(name, store, partitions, report)):
        chunk.to_csv(csv_path, mode='w' if i == 0 else 'a', header=(i == 0), index=False)
        rows += len(chunk)

    log_info(f'{name}: wrote {rows} row(s) to {csv_path}', report)

    return csv_path


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def run(view_names: Optional[List[str]] = None,
        raw_path: str = config.RAW_DATA_BASE_PATH,
        output_path: str = config.VIEWS_OUTPUT_PATH,
        partitions: int = config.VIEW_PARTITIONS,
        strict: bool = config.VALIDATE_STRICT
        ) -> Report:
    report = init_report()
    names = view_names or list(VIEW_BUILDERS)

    unknown = [name for name in names if name not in VIEW_BUILDERS]
    if unknown:
        raise ConfigurationError(f'unknown view(s): {unknown}')

    store = EntityStore.from_csv_dir(raw_path, report, strict)
    validate_store(store, report)

    if report['errors']:
        log_error('Validation failed, no views written', report)

        return report

    for name in names:
        write_view(name, store, output_path, partitions, report)

    return report


def main() -> None:
    try:
        report = run(sys.argv[1:])
    except ConfigurationError as e:
        print(f'[ERROR] {e}')
        sys.exit(2)
    except MalformedRecordError as e:
        print(f'[ERROR] {e}')
        sys.exit(1)

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
