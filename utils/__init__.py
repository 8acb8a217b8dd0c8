"""
utils package
-------------

Contains utility modules used throughout the modelling service.

Includes configuration parsing, data-source loading, constants, logging, model-building helpers and UI spec derivation.
"""
