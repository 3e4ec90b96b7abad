"""Presentation layer: the attendant console"""
