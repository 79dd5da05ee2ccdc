"""Clinic application: accounts, doctor onboarding and clinical records.

This package contains models, serializers, services, views and route
registrations implementing the API the clinic front-end talks to.
"""
