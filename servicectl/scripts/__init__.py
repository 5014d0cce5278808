"""
Console scripts, one per service action.  See `utils.entrypoint` for how they're built.
"""
