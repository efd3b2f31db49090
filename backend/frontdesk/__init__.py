"""
Hotel Fountain 前台管理系统
"""
__version__ = "1.0.0"
