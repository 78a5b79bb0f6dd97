"""Provisioning pipeline: configuration, network resolution, execution and orchestration."""
