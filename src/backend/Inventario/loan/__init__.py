"""Loan module for Inventario.

This module tracks loans of inventory items to users, from the initial
request through approval and return, keeping the item stock in step.
"""
