"""ID generators. Recurrence series ids are CUID2 strings."""

from cuid2 import cuid_wrapper

_series_id_factory = cuid_wrapper()


def generate_series_id() -> str:
    """Return a new collision-resistant recurrence series id (CUID2).

    Raises:
        TypeError: If the CUID factory returns something other than a string.
    """
    series_id = _series_id_factory()
    if not isinstance(series_id, str):
        raise TypeError(f"CUID factory returned {type(series_id).__name__}, not str")
    return series_id
