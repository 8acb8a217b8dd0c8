import json
from config.paths import CONSTANTS_PATH

"""
Loads configuration constants from config/constants.json and exposes them as module-level variables.
Edit constants.json to change values; import from utils.constants to use in code.
"""

with open(CONSTANTS_PATH, "r", encoding="utf-8") as f:
    _constants = json.load(f)

# Solver tuning
SOLVER_TIME_LIMIT_SECONDS = _constants["SOLVER_TIME_LIMIT_SECONDS"]
SOLVER_NUM_WORKERS = _constants["SOLVER_NUM_WORKERS"]
SOLVER_RANDOM_SEED = _constants["SOLVER_RANDOM_SEED"]

# Work scheduling defaults
DEFAULT_MAX_DAILY_ASSIGNMENTS = _constants["DEFAULT_MAX_DAILY_ASSIGNMENTS"]
DEFAULT_MAX_CONSECUTIVE_DAYS = _constants["DEFAULT_MAX_CONSECUTIVE_DAYS"]
DEFAULT_MIN_REST_DAYS = _constants["DEFAULT_MIN_REST_DAYS"]
DEFAULT_TIME_WINDOW_START = _constants["DEFAULT_TIME_WINDOW_START"]
DEFAULT_TIME_WINDOW_END = _constants["DEFAULT_TIME_WINDOW_END"]
DEFAULT_SCENARIO = _constants["DEFAULT_SCENARIO"]

# Specification grammar
SUPPORTED_PATCH_OPERATIONS = tuple(_constants["SUPPORTED_PATCH_OPERATIONS"])
OVERRIDE_PHASES = tuple(_constants["OVERRIDE_PHASES"])
CONFIG_SECTIONS = tuple(_constants["CONFIG_SECTIONS"])
