"""
tsfixer - TypeScript Diagnostic-Driven Import Fixer

Runs the TypeScript compiler, parses its diagnostics in whatever format the
local toolchain happens to print, and applies conservative import rewrites:

- Merges duplicate import/require statements for the same module
- Removes import bindings certified unused by ESLint or the compiler
- Falls back to content-only merging when diagnostics carry no line evidence
- Re-runs the compiler once and reports whether the error count went down
"""

VERSION = "1.0.0"

__version__ = VERSION
