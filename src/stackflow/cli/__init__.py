"""
Command line interface for stackflow.
"""
