from __future__ import annotations

from infragraph.core import ConfigModel


class StackContext(ConfigModel):
    """Deployment-wide settings passed explicitly to every blueprint.

    Attributes:
        app: Application name.
        env: Environment name, e.g. dev or prod.
        location: Azure region.
        resource_group_name: Resource group the resources go into.
        subscription_id: Azure subscription id.
        tenant_id: Azure AD tenant id.
        instance: Instance suffix used in globally unique names.
        tags: Tags applied to taggable resources.
    """

    app: str
    env: str
    location: str
    resource_group_name: str
    subscription_id: str = ""
    tenant_id: str = ""
    instance: str = "01"
    tags: dict[str, str] = {}

    def resource_tags(self) -> dict[str, str]:
        return {"app": self.app, "env": self.env, **self.tags}
