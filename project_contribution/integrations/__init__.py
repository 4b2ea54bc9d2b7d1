"""
Clients and adapters for external systems (GitHub).
"""
