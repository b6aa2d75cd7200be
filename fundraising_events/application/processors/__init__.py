# Idempotent processors; build_processors() in registry wires them all.
