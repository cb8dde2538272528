"""LP file format serialization."""

from .lp_format import LP_INFINITY, row_names, serialize, to_lp_string, write_lp

__all__ = ["LP_INFINITY", "row_names", "serialize", "to_lp_string", "write_lp"]
