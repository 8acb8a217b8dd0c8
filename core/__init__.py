"""
core
----

Core modelling components:

- Specification & friends (`spec`):
  Immutable description of a model: indexes, parameters, options and overrides.

- Registry:
  Name -> capability tables for templates, constraints and objectives.

- ModelHandle (`state`):
  The CP-SAT model plus its named variable families.

- apply_config_patch (`patch`):
  Structural merges on a Specification.

- SessionStore (`session`):
  Thread-safe sessions caching built models and solutions.
"""
