create_model_description = """
Create a model session from a full configuration

### Request Body

A configuration object with the following sections:

- `template`: Name of a registered template (required), e.g. `work_scheduling`
- `indexes`: Named index sets (Optional)
    - `type: date_range` with `start` and `end` (ISO dates, inclusive)
    - `type: list` with `values` (list of strings)
- `parameters`: Named data inputs (Optional)
    - `type: table` with `schema` (column names) and `source`
    - `type: dict` with `key` and `source`
    - `type: scalar` with `value` and optional `value_type` (`int`, `float`, `str`, `bool`, `any`)
- `options`: Free-form key/value settings for the template (Optional)
- `overrides`: Capability calls grouped by phase (Optional)
    - `constraints`: List of `{name, function, args}` applied in order
    - `objective`: List of `{name, function, args}`; only the first entry is used

Sources are `csv` (`path`, `options`), `json` (`path`, `key_path`), `api` (`url`, `headers`, `transform`),
`function` (`function`, `args`) or `literal` (`data`).
`function` sources and `api` transforms name callables in the service function table
(see `main.create_store`); the default service starts with an empty table.

Unknown top-level sections are accepted with a warning.

### Response

- `model_id`: Id of the new session
- `template`: Echoed template name
- `status`: `created`
"""

patch_model_description = """
Apply one or more merge patches to a session's configuration

### Request Body

Either a single patch:

- `operation`: Only `merge` is supported (default)
- `path`: `[section, name]` or `"section.name"`, where section is `parameters`, `options`, `indexes` or `overrides`
- `value`: New value (rows for table parameters, a mapping for dict parameters)

or a batch: `{"patches": [...]}`. A batch is applied atomically; if any patch fails, none are applied.

Any cached model and solution are discarded and the status becomes `updated`.
"""

solve_model_description = """
Build (if needed) and solve the session's model

Reuses the cached model when no patch was applied since the last build.

### Response

- `status`: Solver status (`OPTIMAL`, `FEASIBLE`, `INFEASIBLE`, `MODEL_INVALID`, `UNKNOWN`)
- `objective_value`: Objective value, or null when there is no solution
- `solve_time`: Wall time in seconds
- `variables`: Values per variable family, nested by index member (dates as ISO strings)

Build failures return 500 with the error kind and move the session to `error`.
"""

ui_spec_description = """
Derive a UI description from the session's configuration

### Request Body

- `query`: Free-text context echoed back as `query_context` (Optional)

### Response

- `visualization_type`: Suggested visualization
- `controls`: Date range / multiselect controls for indexes and sliders for cost- or demand-like parameters
- `filters`: Index names worth filtering on
- `metrics`: Metric names to display
"""
