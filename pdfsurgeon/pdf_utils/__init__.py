"""
Object model and graph-mutation utilities.

The members of :mod:`.generic` and :mod:`.document` make up the data model;
the remaining modules implement document-level operations on top of it.
"""
