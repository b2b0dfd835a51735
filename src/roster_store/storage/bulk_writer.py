from typing import Any, Callable, List, Sequence, Tuple

from loguru import logger
from pydantic import BaseModel

from .drivers import Driver
from .errors import WriteError


def build_insert(
    table: str,
    rows: Sequence[BaseModel],
    placeholder: str,
    quote: Callable[[str], str],
) -> Tuple[str, List[Any]]:
    """Builds one multi-row INSERT with every value bound positionally.

    The column list comes from the first row; every other row must have the
    same fields in the same order.

    Returns:
        The SQL text and the flat parameter list.
    """
    if not rows:
        raise ValueError(f"Cannot build an insert for {table} without rows")

    columns = list(rows[0].model_dump().keys())
    params: List[Any] = []
    groups: List[str] = []
    group = "(" + ", ".join([placeholder] * len(columns)) + ")"

    for index, row in enumerate(rows):
        record = row.model_dump()
        if list(record.keys()) != columns:
            raise WriteError(
                f"Row {index} of {table} has columns {list(record.keys())}, expected {columns}",
                table=table,
            )
        params.extend(record.values())
        groups.append(group)

    column_list = ", ".join(quote(c) for c in columns)
    sql = f"INSERT INTO {quote(table)} ({column_list}) VALUES {', '.join(groups)}"
    return sql, params


def write_table(
    connection: Any, driver: Driver, table: str, rows: Sequence[BaseModel]
) -> int:
    """Inserts all `rows` into `table` in a single statement.

    Returns the number of rows written; an empty `rows` is a no-op.

    Raises:
        WriteError: if the rows are not uniform or the driver rejects the statement.
    """
    if not rows:
        logger.debug(f"No rows provided for {table}. Skipping.")
        return 0

    sql, params = build_insert(table, rows, driver.placeholder, driver.quote)

    cur = connection.cursor()
    try:
        cur.execute(sql, params)
    except driver.error_types as e:
        logger.error(f"Error inserting {len(rows)} rows into {table}: {e}")
        raise driver.wrap_error(WriteError, e, table=table) from e
    finally:
        cur.close()

    logger.debug(f"Inserted {len(rows)} rows into {table}")
    return len(rows)
