"""
Data preparation verbs used by the recipes.

Every function here is pure: it returns a new frame and never mutates its
input. Grouping keys are always passed explicitly; nothing carries grouped
state from one step to the next.

Rolling windows are trailing: the value at position i averages rows
i-W+1 .. i of its group, and the first W-1 rows of every group are NaN.
"""

import ast
import numbers
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .exceptions import SchemaMismatch

Reducer = Union[str, Callable[[pd.Series], Any]]
ReducerSpec = Union[Reducer, Tuple[str, Reducer]]
Predicate = Union[str, Mapping[str, Any], Callable[[pd.DataFrame], Any]]

NAMED_REDUCERS = {"mean", "sum", "count", "median", "std", "min", "max", "size", "first", "last"}


def _as_list(columns: Union[None, str, Iterable[str]]) -> List[str]:
    if columns is None:
        return []
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def _query_names(query: str) -> List[str]:
    """Column-like names a pandas query refers to; backtick-quoted names included."""
    quoted = re.findall(r"`([^`]+)`", query)
    try:
        tree = ast.parse(re.sub(r"`[^`]+`", "0", query), mode="eval")
    except SyntaxError:
        return quoted
    names = [node.id for node in ast.walk(tree) if isinstance(node, ast.Name)]
    return list(dict.fromkeys(quoted + names))


def require_columns(df: pd.DataFrame, columns: Iterable[str], step: str) -> None:
    """Raise SchemaMismatch if any of ``columns`` is missing from ``df``."""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise SchemaMismatch(step, missing, df.columns)


def quantile(p: float) -> Callable[[pd.Series], float]:
    """Reducer computing the ``p`` quantile of a group."""
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"quantile must be within [0, 1], got {p}")

    def _quantile(series: pd.Series) -> float:
        return series.quantile(p)

    _quantile.__name__ = f"q{round(p * 100):g}"
    return _quantile


def filter_rows(df: pd.DataFrame, predicate: Predicate) -> pd.DataFrame:
    """
    Keep the rows satisfying ``predicate``.

    Args:
        df: Input dataset
        predicate: One of
            - a pandas query string, e.g. ``"type == 'confirmed'"``
            - a mapping ``{column: value}``, ``{column: [values]}`` or
              ``{column: callable(Series) -> bool mask}``; entries are ANDed
            - a callable taking the frame and returning a boolean mask

    Returns:
        A new frame with the matching rows and the original index.
    """
    if isinstance(predicate, str):
        try:
            return df.query(predicate).copy()
        except pd.errors.UndefinedVariableError as e:
            missing = [name for name in _query_names(predicate) if name not in df.columns and name != "index"]
            raise SchemaMismatch("filter", missing or [predicate], df.columns) from e

    if isinstance(predicate, Mapping):
        require_columns(df, predicate.keys(), "filter")
        mask = pd.Series(True, index=df.index)
        for column, condition in predicate.items():
            if callable(condition):
                mask &= condition(df[column]).astype(bool)
            elif isinstance(condition, (list, tuple, set, frozenset)):
                mask &= df[column].isin(list(condition))
            else:
                mask &= df[column] == condition
        return df.loc[mask].copy()

    if callable(predicate):
        try:
            mask = predicate(df)
        except SchemaMismatch:
            raise
        except KeyError as e:
            raise SchemaMismatch("filter", [e.args[0] if e.args else "?"], df.columns) from e
        return df.loc[mask].copy()

    raise TypeError(f"Unsupported predicate type: {type(predicate).__name__}")


def _normalize_reducers(reducers: Mapping[str, ReducerSpec]) -> Dict[str, Tuple[str, Reducer]]:
    normalized = {}
    for output, spec in reducers.items():
        if isinstance(spec, tuple):
            source, reducer = spec
        else:
            source, reducer = output, spec
        if isinstance(reducer, str) and reducer not in NAMED_REDUCERS:
            raise ValueError(f"Unknown reducer '{reducer}' for column {output}")
        normalized[output] = (source, reducer)
    return normalized


def group_aggregate(
    df: pd.DataFrame,
    keys: Union[str, Sequence[str]],
    reducers: Mapping[str, ReducerSpec],
    sort_by: Union[None, str, Sequence[str]] = None,
    descending: bool = False,
) -> pd.DataFrame:
    """
    Partition rows by ``keys`` and reduce each group to one row.

    Args:
        df: Input dataset
        keys: Grouping column(s)
        reducers: Output column -> reducer, or output column -> (source column, reducer).
            Reducers are pandas names ("mean", "sum", "count", ...) or callables
            such as ``quantile(0.25)``.
        sort_by: Optional column(s) to order the result by; groups otherwise
            appear in the order they are first encountered.
        descending: Sort direction when ``sort_by`` is given

    Returns:
        One row per distinct key tuple with the key columns followed by the reduced columns.
    """
    keys = _as_list(keys)
    if not keys:
        raise ValueError("group_aggregate requires at least one grouping key")
    normalized = _normalize_reducers(reducers)
    require_columns(df, keys + [source for source, _ in normalized.values()], "group_aggregate")

    if df.empty:
        return pd.DataFrame({col: pd.Series(dtype=df[col].dtype) for col in keys}
                            | {out: pd.Series(dtype='float64') for out in normalized})

    named = {out: pd.NamedAgg(column=source, aggfunc=reducer) for out, (source, reducer) in normalized.items()}
    result = (
        df.groupby(keys, sort=False, dropna=False, observed=True)
        .agg(**named)
        .reset_index()
    )

    if sort_by is not None:
        sort_columns = _as_list(sort_by)
        require_columns(result, sort_columns, "group_aggregate sort")
        result = result.sort_values(sort_columns, ascending=not descending, kind="mergesort").reset_index(drop=True)

    return result


def derive_column(df: pd.DataFrame, name: str, expr: Callable[[pd.DataFrame], Any]) -> pd.DataFrame:
    """Return a copy of ``df`` with ``name`` computed by ``expr(df)``."""
    try:
        values = expr(df)
    except SchemaMismatch:
        raise
    except KeyError as e:
        raise SchemaMismatch(f"derive {name}", [e.args[0] if e.args else "?"], df.columns) from e
    return df.assign(**{name: values})


def recode(column: str, keep: Union[Any, Iterable[Any]], other: str = "other") -> Callable[[pd.DataFrame], pd.Series]:
    """Expression keeping the listed category values and mapping every other value to ``other``."""
    keep_values = [keep] if isinstance(keep, str) or not isinstance(keep, Iterable) else list(keep)

    def _recode(df: pd.DataFrame) -> pd.Series:
        require_columns(df, [column], f"recode {column}")
        values = df[column]
        return values.where(values.isin(keep_values), other).astype(str)

    return _recode


def day_of_month(column: str) -> Callable[[pd.DataFrame], pd.Series]:
    """Expression extracting the day of month from a date column."""
    def _day(df: pd.DataFrame) -> pd.Series:
        require_columns(df, [column], f"day_of_month {column}")
        return pd.to_datetime(df[column]).dt.day

    return _day


def _ordered_groups(df: pd.DataFrame, column: str, order_by: str, group_by: List[str], step: str):
    require_columns(df, [column, order_by] + group_by, step)
    ordered = df.reset_index(drop=True)
    ordered = ordered.sort_values(order_by, kind="mergesort")
    if group_by:
        return ordered, ordered.groupby(group_by, sort=False, dropna=False, observed=True)[column]
    return ordered, None


def rolling_mean(
    df: pd.DataFrame,
    column: str,
    window: int,
    order_by: str,
    group_by: Union[None, str, Sequence[str]] = None,
    name: Optional[str] = None,
) -> pd.DataFrame:
    """
    Add a trailing simple moving average of ``column`` computed per group.

    Rows are ordered by ``order_by`` within each group. Positions without a
    full window of ``window`` rows are NaN, so every group starts with
    ``window - 1`` undefined values.

    Returns:
        A copy of ``df`` (index reset) with the new column; row order is unchanged.
    """
    if isinstance(window, bool) or not isinstance(window, numbers.Integral) or window < 1:
        raise ValueError(f"window must be a positive integer, got {window!r}")
    window = int(window)
    group_by = _as_list(group_by)
    name = name or f"{column}_rolling_mean"

    ordered, grouped = _ordered_groups(df, column, order_by, group_by, "rolling_mean")
    if grouped is not None:
        values = grouped.transform(lambda s: s.rolling(window, min_periods=window).mean())
    else:
        values = ordered[column].rolling(window, min_periods=window).mean()

    result = df.reset_index(drop=True)
    result[name] = values.sort_index().astype('float64')
    return result


def cumulative_sum(
    df: pd.DataFrame,
    column: str,
    order_by: str,
    group_by: Union[None, str, Sequence[str]] = None,
    name: Optional[str] = None,
) -> pd.DataFrame:
    """Add the running total of ``column`` per group, ordered by ``order_by``."""
    group_by = _as_list(group_by)
    name = name or f"{column}_cumulative"

    ordered, grouped = _ordered_groups(df, column, order_by, group_by, "cumulative_sum")
    values = grouped.cumsum() if grouped is not None else ordered[column].cumsum()

    result = df.reset_index(drop=True)
    result[name] = values.sort_index()
    return result


def drop_undefined(df: pd.DataFrame, columns: Union[str, Sequence[str]]) -> pd.DataFrame:
    """Drop rows where any of ``columns`` is undefined, e.g. rolling-window boundaries."""
    columns = _as_list(columns)
    require_columns(df, columns, "drop_undefined")
    return df.dropna(subset=columns).reset_index(drop=True)
