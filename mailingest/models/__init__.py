"""Data models for parsed email messages"""
