"""
ESPN authentication: cookie configuration and credential loading.
"""
