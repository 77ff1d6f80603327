"""inputdeck test suite.

Test organization:
- unit/test_types.py: value types, Vector3D and path helpers
- unit/test_readers.py: mapping, YAML and Python-script readers
- unit/test_schema.py: schema declaration, conflicts and constraints
- unit/test_verification.py: whole-tree verification and diagnostics
- unit/test_extraction.py: typed reads, struct arrays and factories
- unit/test_functions.py: function bindings and call marshaling
- unit/test_docs_mirror.py: documentation output and the value mirror
- unit/test_settings_logging.py: settings, logging and env expansion
"""
