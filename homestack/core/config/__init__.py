"""
Configuration — homelab.yml loading and service template discovery.
"""
