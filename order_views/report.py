# =============================================================================
# RUN REPORT & LOGS
# =============================================================================
# - Collect every message emitted during a run in one report object
# - Count non-fatal integrity findings and rejected records per relation
# - Print a post-run summary for operators and CI logs


import warnings
from typing import Any, Dict, List, Optional

from order_views.config import REJECTED_SAMPLE_LIMIT
from order_views.errors import DataIntegrityWarning, MalformedRecordError


Report = Dict[str, Any]


def init_report() -> Report:

    return {
        'errors': [],
        'warnings': [],
        'info': [],
        'integrity': {},
        'rejected': {},
        'rejected_samples': [],
    }


def log_info(message: str, report: Optional[Report]) -> None:
    print(f'[INFO] {message}')
    if report is not None:
        report['info'].append(message)


def log_warning(message: str, report: Optional[Report]) -> None:
    print(f'[WARNING] {message}')
    if report is not None:
        report['warnings'].append(message)


def log_error(message: str, report: Optional[Report]) -> None:
    print(f'[ERROR] {message}')
    if report is not None:
        report['errors'].append(message)


# ------------------------------------------------------------
# DIAGNOSTIC COUNTERS
# ------------------------------------------------------------

def log_integrity(kind: str, count: int, message: str,
                  report: Optional[Report]
                  ) -> None:
    """
    Record a non-fatal integrity finding and raise it as a warning.
    """

    if count <= 0:

        return

    log_warning(message, report)
    warnings.warn(message, DataIntegrityWarning, stacklevel=2)

    if report is not None:
        report['integrity'][kind] = report['integrity'].get(kind, 0) + int(count)


def log_rejected(error: MalformedRecordError, report: Optional[Report]) -> None:
    if report is None:

        return

    rejected = report['rejected']
    rejected[error.relation] = rejected.get(error.relation, 0) + 1

    if len(report['rejected_samples']) < REJECTED_SAMPLE_LIMIT:
        report['rejected_samples'].append(str(error))


def summarize_report(report: Report) -> List[str]:
    """
    Post-run summary lines: counts first, then sample rejections.
    """

    lines = [
        f'errors: {len(report["errors"])}',
        f'warnings: {len(report["warnings"])}',
    ]

    for kind, count in sorted(report['integrity'].items()):
        lines.append(f'integrity {kind}: {count}')

    for relation, count in sorted(report['rejected'].items()):
        lines.append(f'rejected {relation}: {count} record(s)')

    for sample in report['rejected_samples']:
        lines.append(f'  - {sample}')

    return lines


# =============================================================================
# END OF SCRIPT
# =============================================================================
