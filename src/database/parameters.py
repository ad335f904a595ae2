"""Named parameter binding for SQL Server batches.

pyodbc only understands positional ``?`` markers, so named parameters
(``@name``) are bound through ``sp_executesql``: the statement text, the
parameter definition list and every value travel as ODBC parameters and are
never spliced into the SQL text.
"""

import re
from typing import Any, List, Mapping, Optional, Tuple, Union

from core.exceptions import InvalidParametersError

ScalarValue = Union[str, int, float, bool, None]

PARAMETER_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MAX_PARAMETER_NAME_LENGTH = 128

INT_MIN, INT_MAX = -2**31, 2**31 - 1
BIGINT_MIN, BIGINT_MAX = -2**63, 2**63 - 1


def normalize_parameter_name(name: str) -> str:
    """Strip an optional leading ``@`` and validate the identifier."""
    if not isinstance(name, str):
        raise InvalidParametersError(f"Parameter name must be a string, got {type(name).__name__}")

    bare = name[1:] if name.startswith("@") else name
    if not bare or len(bare) > MAX_PARAMETER_NAME_LENGTH or not PARAMETER_NAME_PATTERN.match(bare):
        raise InvalidParametersError(
            f"Invalid parameter name '{name}' (expected letters, digits and _, not starting with a digit)",
            details={"parameter": name}
        )
    return bare


def infer_sql_type(name: str, value: Any) -> str:
    """Pick the T-SQL type used to declare a parameter from its Python value."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "BIT"
    if isinstance(value, int):
        if INT_MIN <= value <= INT_MAX:
            return "INT"
        if BIGINT_MIN <= value <= BIGINT_MAX:
            return "BIGINT"
        raise InvalidParametersError(
            f"Parameter '@{name}' is outside the BIGINT range",
            details={"parameter": name}
        )
    if isinstance(value, float):
        return "FLOAT"
    if value is None or isinstance(value, str):
        return "NVARCHAR(MAX)"
    raise InvalidParametersError(
        f"Parameter '@{name}' has unsupported type {type(value).__name__} "
        "(expected string, number, boolean or null)",
        details={"parameter": name}
    )


def bind_parameters(
    sql: str,
    parameters: Optional[Mapping[str, ScalarValue]] = None
) -> Tuple[str, List[Any]]:
    """Build the statement and positional values sent to the driver.

    Args:
        sql: SQL text executed as-is
        parameters: Optional mapping of parameter name to scalar value

    Returns:
        Tuple of (statement, values). Without parameters the statement is
        the original SQL and values is empty.

    Raises:
        InvalidParametersError: On bad names, duplicates or value types
    """
    if not parameters:
        return sql, []

    declarations = []
    assignments = []
    values: List[Any] = []
    seen = set()

    for raw_name, value in parameters.items():
        name = normalize_parameter_name(raw_name)
        key = name.lower()  # T-SQL identifiers are case-insensitive
        if key in seen:
            raise InvalidParametersError(
                f"Duplicate parameter '@{name}'",
                details={"parameter": raw_name}
            )
        seen.add(key)

        declarations.append(f"@{name} {infer_sql_type(name, value)}")
        assignments.append(f"@{name} = ?")
        values.append(value)

    statement = "EXEC sp_executesql ?, ?, " + ", ".join(assignments)
    return statement, [sql, ", ".join(declarations)] + values
