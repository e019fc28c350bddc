"""Service layer for Store Service"""
