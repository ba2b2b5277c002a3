"""Personal health log: half-hourly symptom values, medications and notes.

The package keeps the in-memory state and remote synchronization logic
separate from the terminal front end so the core can be tested without I/O.
"""
