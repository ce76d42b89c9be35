"""HTTP, service index and management API clients"""
