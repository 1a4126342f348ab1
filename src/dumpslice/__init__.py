"""dumpslice - split MySQL dumps into per-table files."""
