"""
In-memory surgery on PDF object graphs: pruning, deletion, renumbering,
stream (de)compression, page removal and attachments.
"""

__version__ = '0.4.0'
