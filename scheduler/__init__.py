"""
scheduler
---------

Main modelling module. Initializes key components:

- `builder`: Specification to model assembly.
- `runner`: Solving and result extraction logic.
- `templates`: Built-in templates and their registration.

Provides high-level access to core modelling functionality.
"""
from . import builder, runner
