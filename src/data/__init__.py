"""Data export and process utilities.

This package provides functions for exporting expression datasets to the flat files
read by the edgeR command line script, and for running external commands.
"""
