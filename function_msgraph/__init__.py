"""function-msgraph — a Crossplane composition function backed by Microsoft Graph.

Resolves users, groups, and service principals through Graph queries and
writes the results back into the composite resource status or the pipeline
context.
"""

__version__ = "0.4.0"

TOOL_NAME = "function-msgraph"
