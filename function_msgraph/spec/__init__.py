"""Function input specification.

This package provides the structural contract for the function's input:
1. Schema — JSON Schema for the Input document
2. Validator — a structural walker that reports every violation it finds
"""

INPUT_API_VERSION = "msgraph.fn.crossplane.io/v1alpha1"
INPUT_API_VERSIONS = (INPUT_API_VERSION, "msgraph.fn.crossplane.io/v1beta1")
INPUT_KIND = "Input"
