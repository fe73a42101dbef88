"""
Emotiva API.

Daily emotional check-ins for children, shared with schools and
psychologists.
"""
