"""Kanidm provider package.

To use the Kanidm client library:
    from kanidm_provider.core.kanidm import KanidmClient, GroupService

To use the resource lifecycle layer:
    from kanidm_provider.core.provisioning_service import provision_group
"""
