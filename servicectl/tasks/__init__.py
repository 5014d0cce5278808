"""
Higher-level methods to interact with services.

Each public function in this module should:

- perform a complete task, as needed by a script or user action
- avoid non-idempotent calls unless required by a prior state change
- collect failures into the returned `Result` instead of raising, so that one broken service
  doesn't abort work on the others
"""
