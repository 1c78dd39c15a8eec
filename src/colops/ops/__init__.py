"""colops Column Operations.

Key Functions:
    - slice_columns, copy_columns, accumulate_columns, concatenate_columns
    - unique_columns: Deduplicate columns and merge weights
    - column_shape, column_length, column_count: Shape queries
    - to_host, to_device, from_numpy, from_scipy, to_numpy, to_scipy,
      empty_like: Conversion
"""

# =============================================================================
# Shape Helpers
# =============================================================================
from ._shape import column_shape, column_length, column_count

# =============================================================================
# Column Operations
# =============================================================================
from ._columns import (
    slice_columns,
    copy_columns,
    accumulate_columns,
    concatenate_columns,
)
from ._dedup import ColumnKeyIndex, unique_columns

# =============================================================================
# Conversion
# =============================================================================
from ._convert import (
    to_host,
    to_device,
    from_numpy,
    from_scipy,
    to_numpy,
    to_scipy,
    empty_like,
)

__all__ = [
    'column_shape',
    'column_length',
    'column_count',
    'slice_columns',
    'copy_columns',
    'accumulate_columns',
    'concatenate_columns',
    'ColumnKeyIndex',
    'unique_columns',
    'to_host',
    'to_device',
    'from_numpy',
    'from_scipy',
    'to_numpy',
    'to_scipy',
    'empty_like',
]
