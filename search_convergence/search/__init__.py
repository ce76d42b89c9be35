"""Topology resolution, replica polling and convergence checks"""
