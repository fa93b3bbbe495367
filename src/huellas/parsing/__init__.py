"""Parsing subsystem for Huellas.

Two phases share one ReferenceTable:
- `huellas.parsing.blocks`: line-by-line block structure over an explicit
  container stack (`huellas.parsing.containers`)
- `huellas.parsing.inline`: inline content of each leaf, once all
  definitions are known
"""
