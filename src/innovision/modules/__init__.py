"""
Feature modules. Each owns its models, repository, service and routers.
"""
