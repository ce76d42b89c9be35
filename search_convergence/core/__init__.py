"""Configuration, errors and data model"""
