"""Personal OS CLI command implementations.

- chat: retrieval-augmented question answering over the owner's posts
- reconcile: re-dispatch events for resources stuck in ``pending``
- init_db: create the PostgreSQL content schema
"""
