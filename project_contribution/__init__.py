"""
Project Contribution service.

Accepts project listings submitted through a public form and turns them into
pull requests against the project directory and logo repositories.
"""
