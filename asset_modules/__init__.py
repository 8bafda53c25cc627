"""
Asset request modules.

Each subpackage is thin glue for one request variant: a config schema, a
workflow table, a ``VariantPolicy`` and a service facade over the kernel
lifecycle engine.
"""
