"""Data model of the expression datasets exported for edgeR."""
