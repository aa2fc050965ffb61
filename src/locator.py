"""
Resolve environment / stack / service names to a service snapshot.
"""

import logging
from typing import Dict, List

from clients import RancherRestClient
from errors import NotFoundError, RemoteError
from models import ServiceRef

logger = logging.getLogger(__name__)


def _first(matches: List[Dict], kind: str, name: str, scope: str) -> Dict:
    """Pick the first match, failing on none and warning on several."""
    if not matches:
        raise NotFoundError(f"{kind} '{name}' not found{scope}")
    if len(matches) > 1:
        ids = ", ".join(str(m.get("id")) for m in matches)
        logger.warning(
            f"{len(matches)} {kind.lower()}s named '{name}'{scope} ({ids}); using {matches[0].get('id')}"
        )
    first = matches[0]
    if not isinstance(first, dict) or not first.get("id"):
        raise RemoteError(f"{kind} lookup for '{name}' returned an item with no id: {first!r}")
    return first


class ResourceLocator:
    """Looks up the service to upgrade by its names."""

    def __init__(self, api: RancherRestClient):
        self.api = api

    def resolve(
        self, environment_name: str, stack_name: str, service_name: str
    ) -> ServiceRef:
        """
        Resolve names to the service to upgrade.

        Args:
            environment_name: Rancher environment (project) name
            stack_name: Stack name within the environment
            service_name: Service name within the stack

        Returns:
            ServiceRef for the first matching service

        Raises:
            NotFoundError: If any level has no match
            RemoteError: If an API call fails
        """
        project = _first(
            self.api.list_projects(name=environment_name),
            "Environment",
            environment_name,
            "",
        )
        project_id = project["id"]

        stack = _first(
            self.api.list_stacks(project_id, stack_name),
            "Stack",
            stack_name,
            f" in environment '{environment_name}'",
        )
        stack_id = stack["id"]

        service = _first(
            self.api.list_services(project_id, stack_id, service_name),
            "Service",
            service_name,
            f" in stack '{stack_name}'",
        )

        ref = ServiceRef.from_api(service)
        logger.info(f"Get service succeeded: serviceName={ref.name} serviceId={ref.id}")
        return ref
