# =============================================================================
# PIPELINE ERRORS
# =============================================================================
# - Fatal configuration errors abort a view before any row is read
# - Malformed records are skipped one at a time and counted
# - Integrity findings are warnings: the view is still produced


class ConfigurationError(ValueError):
    """
    Invalid join specification or unknown view.
    """


class MalformedRecordError(ValueError):
    """
    A single record failed type coercion or has a null key column.
    """

    def __init__(self, relation: str, record_key: str, column: str, value,
                 reason: str = 'unparsable'):
        self.relation = relation
        self.record_key = record_key
        self.column = column
        self.value = value
        self.reason = reason
        super().__init__(
            f'{relation}: record {record_key} has {reason} `{column}` value {value!r}'
            )


class DataIntegrityWarning(UserWarning):
    """
    Source data breaks a 1:1 assumption a view relies on.
    """


# =============================================================================
# END OF SCRIPT
# =============================================================================
