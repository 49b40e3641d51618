"""Test package for the document data API"""
