"""
scheduler.rules
---------------

Exposes the override capabilities by importing from:

- `constraints`: Extra constraints (time windows, consecutive days, rest days).
- `objectives`: Replacement objectives (cost, coverage, workload balance).
"""
from .constraints import *
from .objectives import *
