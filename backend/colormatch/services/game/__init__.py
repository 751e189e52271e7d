"""Color-match round engine.

``engine`` holds the immutable round and its tap/tick/exit transitions,
built on ``difficulty``, ``palette``, ``grid`` and ``achievements``.
``session`` serializes those transitions for one live round and writes
results through ``stores``; ``scheduler`` feeds it one tick per second.
"""
