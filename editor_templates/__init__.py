"""Jinja2 templates for the editor and admin pages"""
