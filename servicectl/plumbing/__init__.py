"""
Low-level APIs for fine-grained service management.

Each public method in this module should:

- perform a single action, idempotently if possible
- raise an exception on any failures
- accept context objects as arguments rather than managing their own

Each method also falls into one of two groups:

- getters (`is_running`, returns a `Result` with an unchanged state and a value)
- actions (`start`, `stop`, `restart`, returns a `Result` object, may modify state)
"""
