"""
shipwright.integrations - External Service Integrations
=========================================================

Currently:
    - tools: Packer / Terraform runners and a mock runner for testing
"""
