"""Values file loading and command line overrides."""

from .loader import load_values, merge_mappings, read_values_file
from .overrides import ValuesError, is_value_override, parse_value_override

__all__ = [
    "ValuesError",
    "is_value_override",
    "load_values",
    "merge_mappings",
    "parse_value_override",
    "read_values_file",
]
