"""Utility modules for Smartlead reporting."""
