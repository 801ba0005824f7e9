"""Keys app package.

Physical key custody: the key catalog and the assignments that record
who holds which key. A key has at most one active assignment; this is
enforced by a partial unique index and re-checked under a row lock by
the custody engine.
"""
