"""Gym management system (Clean Architecture + OOP).

Feature modules own their model / repository / service / controller layers.
"""
