"""
Presentation helpers.

Pure functions that turn store state into what a front end draws: the month
calendar, the per-day editing grid, the chart or list view of a day and the
standard-pattern grid. They never mutate the store.
"""
