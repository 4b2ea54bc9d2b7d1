"""
API package for the Project Contribution service.
"""
