"""Stocklet API v1 endpoints"""
