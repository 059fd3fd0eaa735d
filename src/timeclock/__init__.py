"""CICO time-tracking backend.

Feature packages (companies, profiles, time_entries, reports, ...) each hold a
domain model, a repository interface with its MySQL implementation, a service
layer and a thin Flask controller.
"""
