"""
Transforms sub-package for index-price-ingest.

Post-processing steps applied only when a caller exports the aggregate:
  - frame.py: AggregateOutput -> one long DataFrame (symbol, name, unix_time, fields...).
  - numbers.py: Coerce raw feed strings to numeric dtypes.
"""
