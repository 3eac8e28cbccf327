"""Starter .intellidiff.toml template."""

DEFAULT_TOML = """\
# intellidiff configuration
version = "1.0"

[git]
timeout = 30              # seconds per git invocation
context_lines = 10000     # context window for full-file diffs
find_renames = true

[output]
format = "terminal"       # terminal | json
show_summary = true

[log]
level = "warning"         # debug | info | warning | error
"""
