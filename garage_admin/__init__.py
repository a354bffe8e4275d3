"""
Garage Admin: records, work orders, permissions and reports for an auto-repair garage.
"""
__version__ = "1.0.0"
